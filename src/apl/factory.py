from src.apl.base import APL
from src.apl.file import FileAPL
from src.apl.upstash import UpstashAPL
from src.config import AplBackend, AppConfig


def create_apl(config: AppConfig) -> APL:
    """Build the auth persistence backend selected by the configuration."""
    if config.apl is AplBackend.UPSTASH:
        return UpstashAPL(url=config.upstash_url, token=config.upstash_token)
    return FileAPL(config.file_apl_path)
