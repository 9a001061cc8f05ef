"""discord.py implementation of the messaging gateway port."""
import discord
import structlog

from src.application.interfaces.messaging_gateway import (
    ListingButton,
    ListingEmbed,
    MessagingGateway,
)
from src.domain.exceptions import GatewayError, MessageNotFoundError

logger = structlog.get_logger(__name__)

_BUTTON_STYLES: dict[str, discord.ButtonStyle] = {
    "primary": discord.ButtonStyle.primary,
    "secondary": discord.ButtonStyle.secondary,
    "success": discord.ButtonStyle.success,
    "danger": discord.ButtonStyle.danger,
}

_MEMBER_PERMISSIONS = discord.PermissionOverwrite(
    view_channel=True,
    send_messages=True,
    attach_files=True,
    embed_links=True,
    read_message_history=True,
)


def to_discord_embed(embed: ListingEmbed) -> discord.Embed:
    result = discord.Embed(
        title=embed.title,
        url=embed.url or None,
        description=embed.description or None,
        color=embed.color,
    )
    for field in embed.fields:
        result.add_field(name=field.name, value=field.value, inline=field.inline)
    if embed.image_url:
        result.set_image(url=embed.image_url)
    if embed.footer:
        result.set_footer(text=embed.footer)
    return result


def build_view(buttons: list[ListingButton]) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    for button in buttons:
        view.add_item(
            discord.ui.Button(
                custom_id=button.custom_id,
                label=button.label,
                style=_BUTTON_STYLES.get(button.style, discord.ButtonStyle.secondary),
            )
        )
    return view


class DiscordMessagingGateway(MessagingGateway):
    def __init__(
        self,
        client: discord.Client,
        *,
        guild_id: str | None = None,
        staff_role_id: str | None = None,
    ) -> None:
        self._client = client
        self._guild_id = guild_id
        self._staff_role_id = staff_role_id

    async def _text_channel(self, channel_id: str, operation: str) -> discord.TextChannel:
        channel = self._client.get_channel(int(channel_id))
        if channel is None:
            try:
                channel = await self._client.fetch_channel(int(channel_id))
            except discord.HTTPException as exc:
                raise GatewayError(operation, channel_id, str(exc)) from exc
        if not isinstance(channel, discord.TextChannel):
            raise GatewayError(operation, channel_id, "not a guild text channel")
        return channel

    async def post_message(self, channel_id: str, text: str) -> None:
        channel = await self._text_channel(channel_id, "post_message")
        try:
            await channel.send(text)
        except discord.HTTPException as exc:
            raise GatewayError("post_message", channel_id, str(exc)) from exc

    async def send_embed(
        self, channel_id: str, embed: ListingEmbed, buttons: list[ListingButton]
    ) -> str:
        channel = await self._text_channel(channel_id, "send_embed")
        try:
            message = await channel.send(embed=to_discord_embed(embed), view=build_view(buttons))
        except discord.HTTPException as exc:
            raise GatewayError("send_embed", channel_id, str(exc)) from exc
        return str(message.id)

    async def edit_message(
        self,
        channel_id: str,
        message_id: str,
        embed: ListingEmbed,
        buttons: list[ListingButton],
    ) -> None:
        channel = await self._text_channel(channel_id, "edit_message")
        try:
            message = await channel.fetch_message(int(message_id))
            await message.edit(embed=to_discord_embed(embed), view=build_view(buttons))
        except discord.NotFound as exc:
            raise MessageNotFoundError("edit_message", channel_id, str(exc)) from exc
        except discord.HTTPException as exc:
            raise GatewayError("edit_message", channel_id, str(exc)) from exc

    async def message_exists(self, channel_id: str, message_id: str) -> bool:
        channel = await self._text_channel(channel_id, "message_exists")
        try:
            await channel.fetch_message(int(message_id))
        except discord.NotFound:
            return False
        except discord.HTTPException as exc:
            raise GatewayError("message_exists", channel_id, str(exc)) from exc
        return True

    async def rename_channel(self, channel_id: str, new_name: str) -> None:
        channel = await self._text_channel(channel_id, "rename_channel")
        if channel.name == new_name:
            return
        try:
            await channel.edit(name=new_name)
        except discord.HTTPException as exc:
            raise GatewayError("rename_channel", channel_id, str(exc)) from exc

    async def move_channel(self, channel_id: str, category_id: str) -> None:
        channel = await self._text_channel(channel_id, "move_channel")
        category = channel.guild.get_channel(int(category_id))
        if not isinstance(category, discord.CategoryChannel):
            raise GatewayError("move_channel", channel_id, f"{category_id} is not a category")
        if channel.category_id == category.id:
            return
        try:
            await channel.edit(category=category, sync_permissions=False)
        except discord.HTTPException as exc:
            raise GatewayError("move_channel", channel_id, str(exc)) from exc

    async def create_listing_channel(
        self, name: str, owner_id: str, category_id: str | None
    ) -> str:
        if self._guild_id is None:
            raise GatewayError("create_listing_channel", "-", "guild_id is not configured")
        guild = self._client.get_guild(int(self._guild_id))
        if guild is None:
            raise GatewayError("create_listing_channel", "-", f"guild {self._guild_id} not available")

        overwrites: dict[discord.abc.Snowflake, discord.PermissionOverwrite] = {
            guild.default_role: discord.PermissionOverwrite(view_channel=False),
            discord.Object(id=int(owner_id)): _MEMBER_PERMISSIONS,
            guild.me: discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                manage_channels=True,
                manage_messages=True,
                embed_links=True,
                read_message_history=True,
            ),
        }
        if self._staff_role_id:
            overwrites[discord.Object(id=int(self._staff_role_id))] = discord.PermissionOverwrite(
                view_channel=True,
                send_messages=True,
                attach_files=True,
                embed_links=True,
                read_message_history=True,
                manage_messages=True,
            )

        category = guild.get_channel(int(category_id)) if category_id else None
        try:
            channel = await guild.create_text_channel(
                name,
                category=category if isinstance(category, discord.CategoryChannel) else None,
                overwrites=overwrites,
                topic=f"eBay listing | owner={owner_id}",
            )
        except discord.HTTPException as exc:
            raise GatewayError("create_listing_channel", "-", str(exc)) from exc

        logger.info("listing_channel_created", channel_id=channel.id, owner_id=owner_id)
        return str(channel.id)
