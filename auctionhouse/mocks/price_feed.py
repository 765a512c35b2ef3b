"""
MockV3Aggregator - Settable price feed.

Test double for the Price Oracle collaborator. Every update opens a new
round; historical rounds stay queryable.
"""

from typing import Dict

from auctionhouse.core.chain import Contract, external
from auctionhouse.core.errors import ErrorReason, ValidationError
from auctionhouse.core.interfaces import IPriceOracle, RoundData
from auctionhouse.utils.logger import get_logger

logger = get_logger("mocks")


class MockV3Aggregator(Contract, IPriceOracle):
    """
    Price feed with a fixed decimal scale.

    Attributes:
        answer_decimals: Scale of every answer
        initial_answer: Answer of round 1, recorded at deploy time
        rounds: round id -> RoundData
        latest_round: Id of the most recent round
    """

    description = "Mock ETH / USD price feed"
    version = 1

    def __init__(self, decimals: int = 8, initial_answer: int = 2000 * 10**8):
        super().__init__()
        self.answer_decimals = decimals
        self.initial_answer = initial_answer
        self.rounds: Dict[int, RoundData] = {}
        self.latest_round = 0

    def on_deploy(self) -> None:
        self._record(self.initial_answer)

    # =========================================================================
    # IPriceOracle
    # =========================================================================

    def decimals(self) -> int:
        return self.answer_decimals

    def latest_round_data(self) -> RoundData:
        return self.rounds[self.latest_round]

    def get_round_data(self, round_id: int) -> RoundData:
        round_data = self.rounds.get(round_id)
        if round_data is None:
            raise ValidationError(f"No data present for round {round_id}", reason=ErrorReason.UNKNOWN_ROUND)
        return round_data

    def latest_answer(self) -> int:
        return self.latest_round_data().answer

    # =========================================================================
    # Mutations
    # =========================================================================

    @external
    def update_answer(self, answer: int) -> int:
        """Publish a new answer. Returns the new round id."""
        round_id = self._record(answer)
        self._emit("AnswerUpdated", current=answer, round_id=round_id, updated_at=self.now)
        logger.debug(f"Price feed {self.address[:10]} round {round_id}: {answer}")
        return round_id

    def _record(self, answer: int) -> int:
        self.latest_round += 1
        self.rounds[self.latest_round] = RoundData(
            round_id=self.latest_round,
            answer=answer,
            started_at=self.now,
            updated_at=self.now,
            answered_in_round=self.latest_round,
        )
        return self.latest_round
