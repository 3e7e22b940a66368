"""Orchestration of requests from the UI layer to the rating domain and the persistence layer (and the reverse direction)."""

import logging
from collections.abc import Callable, Mapping
from datetime import date, datetime, timezone
from uuid import UUID

from fide_tracker.api.models import (
    BackupIdRequest,
    BackupRequest,
    BackupResponse,
    CalculateRequest,
    CalculateResponse,
    DeleteGameRequest,
    EditGameRequest,
    GameRecordResponse,
    LiveRatingRequest,
    LiveRatingResponse,
    MonthlyBucketResponse,
    MonthlySummaryRequest,
    RecordGameRequest,
    ReorderRequest,
)
from fide_tracker.core.config import get_settings
from fide_tracker.core.exceptions import (
    InvalidRequestError,
    ReadOnlyMonthError,
    RepositoryError,
)
from fide_tracker.core.models import BackupSnapshot, GameRecord
from fide_tracker.db.repository import BackupRepository, GameRecordRepository
from fide_tracker.rating.aggregator import (
    apply_edit,
    bucket_key,
    group_by_month,
    live_rating,
    recompute,
    remove_record,
    total_change,
)
from fide_tracker.rating.backups import create_snapshot
from fide_tracker.rating.engine import compute_rating_change, expected_score
from fide_tracker.rating.months import month_key_for

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RatingTrackerService:
    """Orchestration of layers for the rating tracker."""

    def __init__(
        self,
        games: GameRecordRepository,
        backups: BackupRepository,
        clock: Callable[[], datetime] = utc_now,
        default_k_factors: Mapping[str, float] | None = None,
    ) -> None:
        self.games = games
        self.backups = backups
        self.clock = clock
        self.default_k_factors = (
            default_k_factors
            if default_k_factors is not None
            else get_settings().default_k_factors
        )

    # -- Calculator --
    def preview_change(self, request: CalculateRequest) -> CalculateResponse:
        """Rating change of a game that is not tracked (yet). Nothing gets stored."""
        k_factor = self._k_factor(request)
        return CalculateResponse(
            rating_change=compute_rating_change(
                request.player_rating, request.opponent_rating, request.outcome, k_factor
            ),
            expected_score=expected_score(request.player_rating, request.opponent_rating),
            k_factor=k_factor,
        )

    def record_game(self, request: RecordGameRequest) -> GameRecordResponse:
        """Compute the rating change and track the game. The month is fixed from the game date here, once."""
        k_factor = self._k_factor(request)
        game_date = request.game_date or self._today()
        record = GameRecord(
            player_rating=request.player_rating,
            opponent_name=request.opponent_name,
            opponent_rating=request.opponent_rating,
            k_factor=k_factor,
            outcome=request.outcome,
            rating_change=compute_rating_change(
                request.player_rating, request.opponent_rating, request.outcome, k_factor
            ),
            rating_category=request.category,
            date=game_date,
            month_key=month_key_for(game_date),
        )
        stored = self.games.add_record(record)
        logger.info(
            "Recorded %s game %s (%+.1f) in %s",
            stored.rating_category,
            stored.id,
            stored.rating_change,
            stored.month_key,
        )
        return GameRecordResponse.from_record(stored)

    # -- History edits --
    def edit_game(self, request: EditGameRequest) -> GameRecordResponse | None:
        """
        Patch a tracked game of the current month.

        Without `recompute` the stored rating change and month stay as they are (a changed date does not move the game).
        Unknown IDs are ignored (returns None): the record may already be gone.
        """
        record = self.games.get_record(request.record_id)
        if record is None:
            logger.info("Edit of unknown game %s ignored", request.record_id)
            return None
        self._ensure_mutable(record)

        history = self.games.list_records(record.rating_category)
        edited = apply_edit(history, record.id, request.to_patch())
        updated = next((r for r in edited if r.id == record.id), None)
        if updated is None:
            # Record was moved or removed between the two reads
            logger.info("Game %s vanished while editing", record.id)
            return None
        if request.recompute:
            updated = recompute(updated)

        stored = self.games.update_record(updated)
        if stored is None:
            return None
        logger.info("Edited game %s", stored.id)
        return GameRecordResponse.from_record(stored)

    def remove_game(self, request: DeleteGameRequest) -> GameRecordResponse | None:
        """Remove a game of the current month, by ID or by position. Unknown targets are a no-op (returns None)."""
        history = self.games.list_records(request.category)
        target = request.record_id if request.record_id is not None else request.position
        remaining = remove_record(history, target)
        kept_ids = {r.id for r in remaining}
        removed = [r for r in history if r.id not in kept_ids]
        if not removed:
            logger.info("Removal of unknown game %s ignored", target)
            return None

        record = removed[0]
        self._ensure_mutable(record)
        deleted = self.games.delete_record(record.id)
        if deleted is None:
            return None
        logger.info("Removed game %s", deleted.id)
        return GameRecordResponse.from_record(deleted)

    def reorder_games(self, request: ReorderRequest) -> list[GameRecordResponse]:
        """Store a new entry order for a category. The IDs must be exactly the IDs of that category's history."""
        history = {r.id: r for r in self.games.list_records(request.category)}
        if len(request.record_ids) != len(history) or set(request.record_ids) != set(history):
            raise InvalidRequestError(
                f"Reorder must list every {request.category} game exactly once."
            )
        stored = self.games.replace_records(
            request.category, [history[record_id] for record_id in request.record_ids]
        )
        return [GameRecordResponse.from_record(r) for r in stored]

    # -- Monthly view --
    def monthly_summary(
        self, request: MonthlySummaryRequest
    ) -> list[MonthlyBucketResponse]:
        today = request.today or self._today()
        buckets = group_by_month(self.games.list_records(request.category), today)
        return [MonthlyBucketResponse.from_bucket(bucket) for bucket in buckets]

    def live_rating(self, request: LiveRatingRequest) -> LiveRatingResponse:
        """
        Rating after every tracked game of the category.

        Without an explicit player rating the one stored on the latest tracked game is used.
        """
        history = self.games.list_records(request.category)
        player_rating = request.player_rating
        if player_rating is None:
            if not history:
                raise InvalidRequestError(
                    f"No player rating given and no {request.category} games tracked yet."
                )
            player_rating = history[-1].player_rating
        return LiveRatingResponse(
            category=request.category,
            player_rating=player_rating,
            total_change=total_change(history),
            live_rating=live_rating(player_rating, history),
        )

    # -- Backups --
    def create_backup(self, request: BackupRequest) -> BackupResponse | None:
        """Snapshot the category's history. Returns None when there is nothing to back up."""
        history = self.games.list_records(request.category)
        snapshot = create_snapshot(history, request.category, self.clock())
        if snapshot is None:
            logger.info("No %s games to back up", request.category)
            return None
        stored = self.backups.save_backup(snapshot)
        logger.info(
            "Backed up %d %s games as %r",
            stored.game_count,
            stored.rating_category,
            stored.month_label,
        )
        return BackupResponse.from_snapshot(stored)

    def reset_history(self, request: BackupRequest) -> BackupResponse | None:
        """Back up the history, then clear it."""
        backup = self.create_backup(request)
        self.games.replace_records(request.category, [])
        logger.info("Cleared %s history", request.category)
        return backup

    def list_backups(self, request: BackupRequest) -> list[BackupResponse]:
        return [
            BackupResponse.from_snapshot(snapshot)
            for snapshot in self.backups.list_backups(request.category)
        ]

    def restore_backup(self, request: BackupIdRequest) -> list[GameRecordResponse]:
        """Replace the category's history with the backed-up games."""
        snapshot = self._fetch_backup(request.backup_id)
        stored = self.games.replace_records(
            snapshot.rating_category, list(snapshot.records)
        )
        logger.info("Restored backup %r", snapshot.month_label)
        return [GameRecordResponse.from_record(r) for r in stored]

    def delete_backup(self, request: BackupIdRequest) -> None:
        self.backups.delete_backup(request.backup_id)

    # -- Internal helpers --
    def _today(self) -> date:
        return self.clock().date()

    def _k_factor(self, request: CalculateRequest) -> float:
        if request.k_factor is not None:
            return request.k_factor
        return self.default_k_factors[str(request.category)]

    def _ensure_mutable(self, record: GameRecord) -> None:
        """Games of past months are frozen history."""
        if bucket_key(record) != month_key_for(self._today()):
            raise ReadOnlyMonthError(
                f"Game {record.id} belongs to {record.month_key}, which is read-only."
            )

    def _fetch_backup(self, backup_id: UUID) -> BackupSnapshot:
        """Attempt to find the backup in the repository and raise error if it fails."""
        snapshot = self.backups.get_backup(backup_id)
        if snapshot is None:
            raise RepositoryError(f"Backup with {backup_id=} not found.")
        return snapshot
