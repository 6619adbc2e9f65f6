"""SMS sending stub."""

import logging
from typing import Dict

from toolcall_llm.tools.registry import ParameterSpec, Scalar, ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

SMS_TOOL_SPEC = ToolSpec(
    name="SendSms",
    description="send SMS",
    parameters={
        "message": ParameterSpec(type="string", required=True, description="text of SMS"),
        "phoneNumber": ParameterSpec(type="string", required=True, description="phone number of recipient"),
    },
)


def send_sms(message: str, phone_number: str) -> str:
    """Pretend to send an SMS and report what would have been sent."""
    logger.info(f"Sending SMS to {phone_number}")
    return f"SMS sent to {phone_number}: '{message}'"


def _handle_send_sms(arguments: Dict[str, Scalar]) -> str:
    return send_sms(str(arguments["message"]), str(arguments["phoneNumber"]))


def register_sms_tool(registry: ToolRegistry) -> None:
    registry.register(SMS_TOOL_SPEC, _handle_send_sms)
