from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class EmbedField:
    name: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class ListingEmbed:
    """Gateway-neutral description of the persistent listing embed."""

    title: str
    url: str | None = None
    description: str = ""
    color: int = 0x2ECC71
    image_url: str | None = None
    fields: tuple[EmbedField, ...] = field(default_factory=tuple)
    footer: str | None = None


@dataclass(frozen=True)
class ListingButton:
    custom_id: str
    label: str
    style: str = "secondary"  # "primary" | "secondary" | "success" | "danger"


class MessagingGateway(ABC):
    """
    Port for channel and message operations in the chat platform.

    Every method raises GatewayError on failure.
    """

    @abstractmethod
    async def post_message(self, channel_id: str, text: str) -> None:
        ...

    @abstractmethod
    async def send_embed(
        self, channel_id: str, embed: ListingEmbed, buttons: list[ListingButton]
    ) -> str:
        """Returns the id of the created message."""
        ...

    @abstractmethod
    async def edit_message(
        self,
        channel_id: str,
        message_id: str,
        embed: ListingEmbed,
        buttons: list[ListingButton],
    ) -> None:
        ...

    @abstractmethod
    async def message_exists(self, channel_id: str, message_id: str) -> bool:
        """False when the message was deleted; GatewayError for any other failure."""
        ...

    @abstractmethod
    async def rename_channel(self, channel_id: str, new_name: str) -> None:
        ...

    @abstractmethod
    async def move_channel(self, channel_id: str, category_id: str) -> None:
        ...

    @abstractmethod
    async def create_listing_channel(
        self, name: str, owner_id: str, category_id: str | None
    ) -> str:
        """Creates a private channel visible to the owner and staff; returns its id."""
        ...
