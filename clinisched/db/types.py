from datetime import datetime
from typing import Annotated

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import mapped_column

# Column annotations
str_id_an = Annotated[str, mapped_column(String(64), primary_key=True)]
ref_id_an = Annotated[str | None, mapped_column(String(64), index=True)]
content_an = Annotated[str | None, mapped_column(Text)]
created_at_an = Annotated[datetime, mapped_column(DateTime, default=func.now())]
updated_at_an = Annotated[
    datetime | None,
    mapped_column(DateTime, default=func.now(), onupdate=func.now()),
]
