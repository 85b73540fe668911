"""Payments domain schemas"""

from typing import Optional

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Acknowledgement returned to the gateway"""

    status: str
    slot_id: Optional[str] = None
