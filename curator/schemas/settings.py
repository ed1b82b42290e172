"""Runtime settings schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SettingsUpdateRequest(BaseModel):
    """Admin update of the active embedding provider and/or document processor.

    Enum membership is checked by the settings service so that an invalid
    value answers 400 with a specific message.
    """

    provider: Optional[str] = Field(None, description="gemini or openai")
    document_processor: Optional[str] = Field(
        None, alias="documentProcessor", description="flowise or direct_gemini"
    )

    model_config = ConfigDict(populate_by_name=True)


class SettingsUpdateResponse(BaseModel):
    success: bool = True
    provider: Optional[str] = None
    document_processor: Optional[str] = Field(None, serialization_alias="documentProcessor")
