"""
Tuition Agent - Main FastAPI Application
"""
import asyncio
import os
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, HTTPException, Query
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
import uvicorn

from config_loader import load_config_or_exit, get_server_config, get_app_config
from logging_setup import setup_logging
from internal.utils import setup_agent
from models.api import ChatMessageIn, ChatMessageOut

logger = logging.getLogger(__name__)

# Global variables
agent = None
config = None

templates = Jinja2Templates(directory=os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan"""
    global agent, config

    # Startup; exits the process before anything listens if config is unusable
    load_dotenv()
    config = load_config_or_exit()
    setup_logging(config)
    agent = setup_agent(config)
    agent.start(asyncio.get_running_loop())
    logger.info("Agent started and listening to Firestore")

    yield

    # Shutdown
    await agent.stop()
    logger.info("Agent stopped")


app = FastAPI(
    title="Tuition Agent",
    description="A tuition assistant powered by Google Gemini, driven by a Firestore chat log",
    version="1.0.0",
    lifespan=lifespan
)


def _message_service():
    service = agent.get_service("message_service") if agent else None
    if service is None:
        raise HTTPException(status_code=503, detail="Agent is not running")
    return service


@app.get("/")
async def root():
    """Health check endpoint"""
    return {"status": "ok", "message": "Agent is running and listening to Firestore."}


@app.get("/health")
async def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "listening": bool(agent and agent.is_listening),
        "config_loaded": config is not None,
        "in_flight": agent.in_flight if agent else 0,
    }


@app.get("/messages", response_class=HTMLResponse)
async def view_messages(request: Request):
    """Chat page; it polls /messages/json and posts to /messages"""
    return templates.TemplateResponse(request, "messages.html", {"title": "Tuition Assistant"})


@app.get("/messages/json")
async def get_messages_json(limit: int = Query(100, ge=1, le=500)):
    """Get chat entries oldest first"""
    messages = await _message_service().get_history(limit=limit)
    return {
        "total_messages": len(messages),
        "messages": [
            ChatMessageOut.from_message(m).model_dump(mode="json", by_alias=True)
            for m in messages
        ],
    }


@app.post("/messages", status_code=201)
async def post_message(body: ChatMessageIn):
    """Append a user entry for the agent to answer"""
    service = _message_service()
    try:
        message_id = await service.post_user_message(body.text)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error saving user message: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"status": "ok", "id": message_id}


if __name__ == "__main__":

    load_dotenv()
    config = load_config_or_exit()
    setup_logging(config)

    server_config = get_server_config(config)
    print("🤖 Starting Tuition Agent...")
    print(f"📍 Host: {server_config['host']}")
    print(f"🔌 Port: {server_config['port']}")

    uvicorn.run(
        "main:app",
        host=server_config["host"],
        port=server_config["port"],
        reload=get_app_config(config)["debug"],
        log_level=get_app_config(config)["log_level"].lower()
    )
