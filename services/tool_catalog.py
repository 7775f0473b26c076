"""
Function declarations offered to Gemini on every request.
"""
from typing import List

from google.generativeai import protos

CHECK_TUITION = protos.FunctionDeclaration(
    name="check_tuition",
    description="Check the outstanding tuition fee for a student.",
    parameters=protos.Schema(
        type=protos.Type.OBJECT,
        properties={
            "student_id": protos.Schema(
                type=protos.Type.STRING,
                description="The ID of the student to check.",
            ),
        },
        required=["student_id"],
    ),
)

PAY_TUITION = protos.FunctionDeclaration(
    name="pay_tuition",
    description="Process a tuition payment for a student.",
    parameters=protos.Schema(
        type=protos.Type.OBJECT,
        properties={
            "student_id": protos.Schema(
                type=protos.Type.STRING,
                description="The ID of the student paying.",
            ),
            "amount": protos.Schema(
                type=protos.Type.NUMBER,
                description="The amount to pay.",
            ),
        },
        required=["student_id", "amount"],
    ),
)

FUNCTION_DECLARATIONS = [CHECK_TUITION, PAY_TUITION]
TUITION_TOOL = protos.Tool(function_declarations=FUNCTION_DECLARATIONS)
TOOL_NAMES = [declaration.name for declaration in FUNCTION_DECLARATIONS]


def required_parameters(name: str) -> List[str]:
    """Required argument names of a declared tool (empty for unknown names)."""
    for declaration in FUNCTION_DECLARATIONS:
        if declaration.name == name:
            return list(declaration.parameters.required)
    return []
