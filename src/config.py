from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.enums.listing_status import ListingStatus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Discord
    discord_token: str = ""
    guild_id: str | None = None
    intake_channel_id: str | None = None
    listing_category_id: str | None = None
    ended_category_id: str | None = None
    sold_category_id: str | None = None
    archive_category_id: str | None = None
    staff_role_id: str | None = None

    # Listing store
    store_backend: str = "json"  # "json" | "sql"
    data_file: str = "data/listings.json"
    database_url: str = "sqlite+aiosqlite:///data/listings.db"

    # eBay Browse API (optional; page scraping is used when disabled)
    ebay_api_enabled: bool = True
    ebay_client_id: str | None = None
    ebay_client_secret: str | None = None
    ebay_marketplace_id: str = "EBAY_US"
    ebay_api_base_url: str = "https://api.ebay.com"
    ebay_oauth_scope: str = "https://api.ebay.com/oauth/api_scope"

    # Page scraping
    scrape_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    http_timeout_seconds: float = 20.0
    description_max_length: int = 500

    # Update engine
    poll_period_seconds: float = 60.0

    # Event bus (events are discarded when unset)
    rabbitmq_url: str | None = None

    # HTTP API (admin + eBay marketplace account deletion endpoint)
    api_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    ebay_verification_token: str = ""
    ebay_deletion_endpoint_url: str = ""

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def ebay_api_configured(self) -> bool:
        return bool(self.ebay_api_enabled and self.ebay_client_id and self.ebay_client_secret)

    @property
    def category_by_status(self) -> dict[ListingStatus, str | None]:
        return {
            ListingStatus.ENDED: self.ended_category_id,
            ListingStatus.SOLD: self.sold_category_id,
            ListingStatus.SHIPPED: self.archive_category_id,
            ListingStatus.CLOSED: self.archive_category_id,
        }


settings = Settings()
