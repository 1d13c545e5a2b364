"""Business logic for the public level listing."""
import logging
from typing import Any, Dict, List

from roblox_client import RobloxAPIError

logger = logging.getLogger(__name__)

DEFAULT_UNIVERSE_ID = '6742973974'


class LevelService:
    """Maps Roblox game metadata to the small level projection the front
    page renders.

    Each level dict has the shape::

        {"id": "<place_id>", "name": "...", "visits": 0, "playing": 0, "hearts": 0}
    """

    def __init__(self, games_client, universe_id: str = DEFAULT_UNIVERSE_ID) -> None:
        """
        Args:
            games_client: A :class:`roblox_client.RobloxGamesClient` (or any
                object exposing ``get_games(universe_ids)``).
            universe_id:  The Roblox universe whose places are listed.
        """
        self._client = games_client
        self._universe_id = str(universe_id)

    @staticmethod
    def _project(game: Dict[str, Any]) -> Dict[str, Any]:
        place_id = game.get('rootPlaceId', game.get('placeId'))
        if place_id is None or 'name' not in game:
            raise RobloxAPIError("Roblox game entry missing place id or name")
        return {
            'id':      str(place_id),
            'name':    game['name'],
            'visits':  game.get('visits', 0),
            'playing': game.get('playing', 0),
            'hearts':  game.get('favoritedCount', game.get('favoriteCount', 0)),
        }

    def list_levels(self) -> List[Dict[str, Any]]:
        """Return the projected levels for the configured universe.

        Returns:
            A list of level dicts; empty when Roblox returns no games.

        Raises:
            RobloxAPIError: The fetch failed or an entry could not be mapped.
                No partial list is ever returned.
        """
        games = self._client.get_games([self._universe_id])
        if not games:
            logger.info("No games returned for universe %s", self._universe_id)
            return []
        if not all(isinstance(g, dict) for g in games):
            raise RobloxAPIError("Roblox games 'data' holds a non-object entry")
        return [self._project(g) for g in games]
