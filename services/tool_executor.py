import logging
from urllib.parse import quote
from typing import Any, Dict, Mapping, Optional

import httpx

from services.tool_catalog import TOOL_NAMES, required_parameters

logger = logging.getLogger(__name__)


class TuitionToolExecutor:
    """Runs model-requested tools against the tuition backend.

    Failures never raise: they come back as ``{"error": ...}`` so the model can
    explain them to the user.
    """

    def __init__(self, config: Dict[str, Any], client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            config: Tuition configuration dictionary (api_url, timeout)
            client: Pre-built HTTP client, mostly for tests
        """
        self.api_url = (config.get("api_url") or "").rstrip("/")
        self.timeout = config.get("timeout", 15.0)
        self.client = client or httpx.AsyncClient(timeout=self.timeout)

    async def execute(self, name: str, args: Mapping[str, Any]) -> Any:
        logger.info(f"[Tool Execution] Calling {name} with {dict(args)}")

        if name not in TOOL_NAMES:
            logger.warning(f"[Tool Error] Model requested unknown tool '{name}'")
            return {"error": "Unknown tool"}

        for param in required_parameters(name):
            if args.get(param) in (None, ""):
                logger.warning(f"[Tool Error] {name} called without '{param}'")
                return {"error": f"Missing required argument: {param}"}

        try:
            if name == "check_tuition":
                # The id is one path segment; "/" or "?" in it must not reach other routes
                student_id = quote(str(args["student_id"]), safe="")
                response = await self.client.get(f"{self.api_url}/tuition/{student_id}")
            else:
                response = await self.client.post(
                    f"{self.api_url}/tuition/pay",
                    json={"student_id": args["student_id"], "amount": args["amount"]},
                )
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"[Tool Error] {name} failed: {str(e)}")
            return {"error": f"API Call Failed: {str(e)}"}

        try:
            return response.json()
        except ValueError:
            return response.text

    async def aclose(self) -> None:
        await self.client.aclose()
