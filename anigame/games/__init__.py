from anigame.games.chain import ChainGameController
from anigame.games.common import GameStartError
from anigame.games.comparison import ComparisonGameController

__all__ = ["ChainGameController", "ComparisonGameController", "GameStartError"]
