from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Reference values
    REFERENCE_ARCHITECT: str = "Javier Andrés Moya Ortiz"
    REFERENCE_PROJECT_NAME: str = ""  # empty = rule disabled

    # Validation thresholds
    MIN_TEXT_LENGTH: int = 100
    MIN_PROJECT_NAME_LENGTH: int = 3

    # Extraction limits
    EXTRACTION_TIMEOUT_SECONDS: float = 30.0
    MAX_PAGES: int = 20
    MAX_FILE_SIZE_MB: int = 50

    # Title-block calibration (PDF points, y measured from the page bottom)
    TITLE_BLOCK_MIN_X: float = 500.0
    TITLE_BLOCK_MIN_Y: float = 0.0
    TITLE_BLOCK_MAX_Y: float = 300.0
    PAGE_MIN_X: float = 0.0
    PAGE_MAX_X: float = 3400.0
    ALIGNMENT_TOLERANCE: float = 2.0

    # Scales
    ACCEPTABLE_SCALES: list[int] = [1, 2, 5, 10, 20, 25, 50, 75, 100, 125, 200, 250, 500, 1000, 2000]
    DETAIL_SCALES: dict[str, str] = {
        "Detalle Baños": "1:25",
        "Detalle de Closets": "1:25",
    }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def max_file_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


settings = Settings()
