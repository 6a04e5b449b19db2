from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    llm_api_key: str = Field(default="", validation_alias=AliasChoices('llm_api_key', 'google_api_key', 'gemini_api_key'))
    llm_model_name: str = Field(default="gemini/gemini-2.0-flash", validation_alias=AliasChoices('llm_model_name', 'google_model_name'))
    llm_temperature: float = 0.2
    llm_max_tokens: int = 4000
    ocr_timeout_seconds: float = 60.0
    image_fetch_timeout_seconds: float = 60.0
    cors_origins: str = "http://localhost:8081,http://localhost:19006"
    log_level: str = "INFO"


settings = Settings()
