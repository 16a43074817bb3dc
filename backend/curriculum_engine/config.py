import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    dataset_path: Optional[str] = Field(None, alias="CURRICULUM_DATASET_PATH")
    max_plan_units: int = Field(50, ge=1, alias="CURRICULUM_MAX_PLAN_UNITS")
    fallback_unit_count: int = Field(5, ge=0, alias="CURRICULUM_FALLBACK_UNITS")
    max_traversal_depth: int = Field(512, ge=1, alias="CURRICULUM_MAX_TRAVERSAL_DEPTH")
    edge_order: Literal["dataset", "target_id"] = Field("dataset", alias="CURRICULUM_EDGE_ORDER")
    path_strategy: Literal["longest", "shortest"] = Field("longest", alias="CURRICULUM_PATH_STRATEGY")
    log_level: str = Field("INFO", alias="CURRICULUM_LOG_LEVEL")
    debug_traversal: bool = Field(False, alias="CURRICULUM_DEBUG_TRAVERSAL")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid engine configuration: {exc}") from exc
