"""SponsorMatch: brand and creator sponsorship matchmaking dashboards."""

__version__ = "1.0.0"
