"""Response schemas for the HTTP boundary."""

from typing import Literal

from pydantic import BaseModel


class TransportError(BaseModel):
    """Error body returned by the HTTP front-end for 400/413/500 responses."""

    ok: Literal[False] = False
    error: str
