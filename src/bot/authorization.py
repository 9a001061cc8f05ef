import discord

from src.domain.entities.listing_record import ListingRecord


def is_staff(member: discord.Member, staff_role_id: str | None) -> bool:
    if member.guild_permissions.manage_channels:
        return True
    if staff_role_id is None:
        return False
    return any(str(role.id) == staff_role_id for role in member.roles)


def can_manage_listing(
    user: discord.abc.User, record: ListingRecord, staff_role_id: str | None
) -> bool:
    """Only the listing owner or staff may refresh or change a listing."""
    if str(user.id) == record.owner_id:
        return True
    return isinstance(user, discord.Member) and is_staff(user, staff_role_id)
