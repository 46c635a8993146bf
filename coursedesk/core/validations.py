import re
from typing import Optional

from coursedesk.core.exceptions import ValidationError

BATCHES = [
    {"id": "batch1", "name": "Batch 1", "time": "7:30 AM - 9:00 AM"},
    {"id": "batch2", "name": "Batch 2", "time": "9:00 AM - 10:30 AM"},
    {"id": "batch3", "name": "Batch 3", "time": "10:30 AM - 12:00 PM"},
    {"id": "batch4", "name": "Batch 4", "time": "12:00 PM - 1:30 PM"},
    {"id": "batch5", "name": "Batch 5", "time": "1:30 PM - 3:00 PM"},
    {"id": "batch6", "name": "Batch 6", "time": "3:00 PM - 4:30 PM"},
    {"id": "batch7", "name": "Batch 7", "time": "4:30 PM - 6:00 PM"},
]

BATCH_IDS = {batch["id"] for batch in BATCHES}


def clean_contact_number(contact: str, field: str = "Contact number") -> str:
    """
    Normalises a 10-digit mobile number.
    Spaces and dashes are dropped; anything else must be digits.
    """
    if not contact:
        raise ValidationError(f"{field} cannot be empty")

    clean_contact = re.sub(r"[\s\-]", "", contact)

    if not re.fullmatch(r"[0-9]{10}", clean_contact):
        raise ValidationError(f"{field} must be a valid 10-digit mobile number")

    return clean_contact


def validate_batch_id(batch_id: Optional[str]) -> Optional[str]:
    if batch_id is not None and batch_id not in BATCH_IDS:
        raise ValidationError(
            f"Unknown batch '{batch_id}'",
            {"allowed": sorted(BATCH_IDS)},
        )
    return batch_id
