"""
Custom exceptions for the league engine with user-friendly error messages.
"""

class LeagueException(Exception):
    """Base exception for league-related errors."""
    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

class LeagueConfigurationError(LeagueException):
    """Raised when the tier table or engine settings are inconsistent. Fatal at startup."""
    def __init__(self, reason: str):
        super().__init__(
            f"Invalid league configuration: {reason}",
            "❌ League is temporarily unavailable."
        )

class ScoreValidationError(LeagueException):
    """Raised when a weekly score grant is rejected."""
    def __init__(self, amount, reason: str):
        super().__init__(
            f"Invalid score amount {amount}: {reason}",
            f"❌ {reason}"
        )

class WeekClosedError(LeagueException):
    """Raised when a score is granted to a week that has already been rolled over."""
    def __init__(self, user_id: str, week_id: str):
        super().__init__(
            f"Week {week_id} already processed for user {user_id}",
            "❌ This league week has already ended."
        )

class UserLeagueNotFoundError(LeagueException):
    """Raised when a user has no league state."""
    def __init__(self, user_id: str):
        super().__init__(
            f"No league state for user '{user_id}'",
            "❌ You have not joined a league yet!"
        )

class StandingsUnavailableError(LeagueException):
    """Raised when standings cannot be read. Safe to retry."""
    retryable = True

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Standings unavailable during {operation}: {details}",
            "❌ Rankings are unavailable right now. Please try again shortly."
        )

class TransactionError(LeagueException):
    """Raised when transaction operations fail."""
    def __init__(self, operation: str, attempts: int):
        super().__init__(
            f"Transaction failed for {operation} after {attempts} attempts",
            "❌ Failed to save league results. Please try again."
        )
