"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Build settings loaded from environment variables and the command line."""

    source_root: Path = Path("content")
    target_root: Path = Path("public")
    copyright: str | None = None
    debug: bool = False
    log_level: str = "INFO"

    page_depth: int = 2
    max_depth: int = 3
    latest_articles_limit: int = 10
    strict_filenames: bool = False

    style_css: str = "./style/simple-static-cms.css"
    script_js: str = "./emmef-util.js"
    font_css: str = "https://fonts.googleapis.com/css?family=Open+Sans:400italic,600italic,400,600"
    mathjax_url: str = (
        "https://cdnjs.cloudflare.com/ajax/libs/mathjax/2.7.1/MathJax.js"
        "?config=TeX-AMS-MML_HTMLorMML"
    )

    model_config = SettingsConfigDict(
        env_prefix="STATICCMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        cli_prog_name="staticcms",
    )


def get_settings(argv: list[str] | None = None) -> Settings:
    """Load settings, reading command-line arguments when argv is given."""
    if argv is None:
        return Settings()
    return Settings(_cli_parse_args=argv)
