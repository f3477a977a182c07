from chairtime.services.availability import PullOptions, pull_availability

__all__ = ["PullOptions", "pull_availability"]
