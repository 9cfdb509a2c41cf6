"""Repository layer for data persistence.

Repositories encapsulate data access logic and provide a clean interface
for the service layer.
"""

from src.repositories.team_member_repo import TeamMemberRepository

__all__ = [
    "TeamMemberRepository",
]
