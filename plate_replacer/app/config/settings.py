from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    api_base_url: str = Field(..., validation_alias="API_BASE_URL")
    api_key: str = Field(..., validation_alias="API_KEY")
    cut_type: str = Field(..., validation_alias="CUT_TYPE")
    guideline_id: str = Field(..., validation_alias="GUIDELINE_ID")
    api_connect_timeout_seconds: float = Field(10.0, validation_alias="API_CONNECT_TIMEOUT_SECONDS")
    api_read_timeout_seconds: float = Field(60.0, validation_alias="API_READ_TIMEOUT_SECONDS")

    processing_mode: Literal["sequential", "concurrent"] = Field(
        "sequential",
        validation_alias="PROCESSING_MODE",
    )
    max_concurrency: int = Field(3, ge=1, validation_alias="MAX_CONCURRENCY")

    # Status queries per image (not "retries after the first"). Sleep runs only between queries.
    poll_interval_ms: int = Field(5000, ge=0, validation_alias="POLL_INTERVAL_MS")
    poll_max_retries: int = Field(60, ge=1, validation_alias="POLL_MAX_RETRIES")

    # Binary results at or below this size fall through to the JSON strategy.
    min_image_bytes: int = Field(1000, ge=0, validation_alias="MIN_IMAGE_BYTES")

    image_source_mode: Literal["local", "shared_folder"] = Field(
        "local",
        validation_alias="IMAGE_SOURCE_MODE",
    )
    input_dir: str = Field("input_images", validation_alias="INPUT_DIR")
    shared_folder_url: str = Field("", validation_alias="SHARED_FOLDER_URL")
    shared_folder_enabled: bool = Field(True, validation_alias="SHARED_FOLDER_ENABLED")
    shared_folder_origin: str = Field("https://drive.google.com", validation_alias="SHARED_FOLDER_ORIGIN")

    logo_dir: str = Field("plate", validation_alias="LOGO_DIR")
    logo_extensions: str = Field("png", validation_alias="LOGO_EXTENSIONS")

    output_dir: str = Field("output_images", validation_alias="OUTPUT_DIR")
    output_suffix: str = Field("_edited", validation_alias="OUTPUT_SUFFIX")
    output_extension: str = Field("png", validation_alias="OUTPUT_EXTENSION")
    write_debug_payloads: bool = Field(True, validation_alias="WRITE_DEBUG_PAYLOADS")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def logo_extension_list(self) -> tuple[str, ...]:
        parts = (p.strip().lower().lstrip(".") for p in self.logo_extensions.split(","))
        return tuple(p for p in parts if p)
