# -*- coding: utf-8 -*-
"""Token proxy request bodies.

Fields are optional so that missing values get the proxy's own 400 body
instead of a validation error; clients send camelCase.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TokenExchangeRequest(_CamelBody):
    code: Optional[str] = None
    provider: Optional[str] = None
    redirect_uri: Optional[str] = Field(None, alias="redirectUri")


class RefreshTokenRequest(_CamelBody):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")
    provider: Optional[str] = None


class RevokeTokenRequest(_CamelBody):
    token: Optional[str] = None
    provider: Optional[str] = None
