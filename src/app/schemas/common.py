"""Shared schema field types."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from app.core.clock import ensure_utc

# Datetimes read back from SQLite are naive; always expose them as UTC
UTCDatetime = Annotated[datetime, AfterValidator(ensure_utc)]
