"""
World of Warcraft community API endpoints.
"""

from urllib.parse import urlencode

from bnetapi.endpoints import register
from bnetapi.endpoints.base import (
    Endpoint,
    FieldsEndpoint,
    Params,
    StaticEndpoint,
    encode_segment,
)


@register("wow", "achievement")
class AchievementEndpoint(Endpoint):
    required_params = ("id",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/achievement/{encode_segment(params['id'])}"


@register("wow", "auction/data")
class AuctionDataEndpoint(Endpoint):
    required_params = ("realm",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/auction/data/{encode_segment(params['realm'])}"


@register("wow", "boss")
class BossEndpoint(Endpoint):
    """Master list of bosses, or a single boss when ``bossId`` is given."""

    def build_path(self, *, params: Params) -> str:
        boss_id = params.get("bossId")
        if boss_id is None:
            return "/wow/boss/"
        return f"/wow/boss/{encode_segment(boss_id)}"


@register("wow", "challenge")
class ChallengeEndpoint(Endpoint):
    """Challenge mode leaderboard of a realm, or of the region with ``realm="region"``."""

    required_params = ("realm",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/challenge/{encode_segment(params['realm'])}"


@register("wow", "character")
class CharacterEndpoint(FieldsEndpoint):
    required_params = ("realm", "characterName")
    valid_fields = (
        "achievements",
        "appearance",
        "audit",
        "feed",
        "guild",
        "hunterPets",
        "items",
        "mounts",
        "pets",
        "petSlots",
        "progression",
        "pvp",
        "quests",
        "reputation",
        "statistics",
        "stats",
        "talents",
        "titles",
    )

    def build_path(self, *, params: Params) -> str:
        path = (
            f"/wow/character/{encode_segment(params['realm'])}"
            f"/{encode_segment(params['characterName'])}"
        )
        return self.with_fields(path=path, params=params)


@register("wow", "guild")
class GuildEndpoint(FieldsEndpoint):
    required_params = ("realm", "guildName")
    valid_fields = ("achievements", "challenge", "members", "news")

    def build_path(self, *, params: Params) -> str:
        path = (
            f"/wow/guild/{encode_segment(params['realm'])}"
            f"/{encode_segment(params['guildName'])}"
        )
        return self.with_fields(path=path, params=params)


@register("wow", "item")
class ItemEndpoint(Endpoint):
    required_params = ("itemId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/item/{encode_segment(params['itemId'])}"


@register("wow", "item/set")
class ItemSetEndpoint(Endpoint):
    required_params = ("setId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/item/set/{encode_segment(params['setId'])}"


@register("wow", "mount")
class MountEndpoint(StaticEndpoint):
    path = "/wow/mount/"


@register("wow", "pet/ability")
class PetAbilityEndpoint(Endpoint):
    required_params = ("abilityId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/pet/ability/{encode_segment(params['abilityId'])}"


@register("wow", "pet/species")
class PetSpeciesEndpoint(Endpoint):
    required_params = ("speciesId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/pet/species/{encode_segment(params['speciesId'])}"


@register("wow", "pet/stats")
class PetStatsEndpoint(Endpoint):
    required_params = ("speciesId",)
    optional_query = ("level", "breedId", "qualityId")

    def build_path(self, *, params: Params) -> str:
        path = f"/wow/pet/stats/{encode_segment(params['speciesId'])}"
        query = {key: params[key] for key in self.optional_query if params.get(key) is not None}
        if not query:
            return path
        return f"{path}?{urlencode(query=query)}"


@register("wow", "pvp/leaderboard")
class PvpLeaderboardEndpoint(Endpoint):
    """Leaderboard of a bracket: ``2v2``, ``3v3``, ``5v5`` or ``rbg``."""

    required_params = ("bracket",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/leaderboard/{encode_segment(params['bracket'])}"


@register("wow", "quest")
class QuestEndpoint(Endpoint):
    required_params = ("questId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/quest/{encode_segment(params['questId'])}"


@register("wow", "realm/status")
class RealmStatusEndpoint(Endpoint):
    """Status of every realm, or of the realms listed in ``realms``."""

    def build_path(self, *, params: Params) -> str:
        realms = params.get("realms")
        if not realms:
            return "/wow/realm/status"
        if isinstance(realms, str):
            realms = realms.split(",")
        return f"/wow/realm/status?realms={','.join(str(realm).strip() for realm in realms)}"


@register("wow", "recipe")
class RecipeEndpoint(Endpoint):
    required_params = ("recipeId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/recipe/{encode_segment(params['recipeId'])}"


@register("wow", "spell")
class SpellEndpoint(Endpoint):
    required_params = ("spellId",)

    def build_path(self, *, params: Params) -> str:
        return f"/wow/spell/{encode_segment(params['spellId'])}"


@register("wow", "zone")
class ZoneEndpoint(Endpoint):
    """Master list of zones, or a single zone when ``zoneId`` is given."""

    def build_path(self, *, params: Params) -> str:
        zone_id = params.get("zoneId")
        if zone_id is None:
            return "/wow/zone/"
        return f"/wow/zone/{encode_segment(zone_id)}"


_DATA_RESOURCES = (
    "battlegroups",
    "character/races",
    "character/classes",
    "character/achievements",
    "guild/rewards",
    "guild/perks",
    "guild/achievements",
    "item/classes",
    "talents",
    "pet/types",
)


def _register_data_resources() -> None:
    for resource in _DATA_RESOURCES:
        register("wow", f"data/{resource}")(
            type(
                f"Data{resource.title().replace('/', '')}Endpoint",
                (StaticEndpoint,),
                {"path": f"/wow/data/{resource}/", "__module__": __name__},
            )
        )


_register_data_resources()
