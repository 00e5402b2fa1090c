"""Subset of the Telegram Bot API ``Update`` object used by the webhook.

Only callback queries from inline buttons are modelled; unknown keys are
ignored so new Bot API fields never break parsing.
"""

from pydantic import BaseModel, ConfigDict, Field


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    username: str | None = None
    first_name: str | None = None


class TelegramChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message_id: int | str
    chat: TelegramChat


class CallbackQuery(BaseModel):
    """Inline-button press. ``data`` carries ``"<action>:<candidate_id>"``."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    data: str | None = None
    from_user: TelegramUser = Field(default_factory=TelegramUser, alias="from")
    message: TelegramMessage | None = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int | None = None
    callback_query: CallbackQuery | None = None
