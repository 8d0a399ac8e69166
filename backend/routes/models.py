"""Pydantic request models for API endpoints."""

from typing import Literal

from pydantic import BaseModel


class NewChainGame(BaseModel):
    username: str = "Anonymous"
    resume: bool = False


class NewComparisonGame(BaseModel):
    username: str = "Anonymous"
    mode: Literal["daily", "unlimited"] = "daily"


class GuessBody(BaseModel):
    title: str
