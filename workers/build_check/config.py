"""
Checker configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Checker settings, read from the environment (BUILD_CHECK_*) or .env"""

    # Inspection backend: "binutils" (nm + objdump) or "elftools"
    BACKEND: str = "binutils"

    # External tools
    NM: str = "nm"
    OBJDUMP: str = "objdump"
    TOOL_TIMEOUT: int = 60  # seconds per command

    # Deliverables
    LIB_STEM: str = "libopenblas"

    class Config:
        env_file = ".env"
        env_prefix = "BUILD_CHECK_"
        case_sensitive = True


settings = Settings()
