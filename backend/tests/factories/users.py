# =============================================================================
# HELPDESK API - USER FACTORIES
# =============================================================================
# Factory for test users
# =============================================================================

import factory


class UserFactory(factory.Factory):
    """
    Factory for registration payloads.
    """

    class Meta:
        model = dict

    name = factory.Sequence(lambda n: f"Test User {n}")
    email = factory.Sequence(lambda n: f"user{n}@acme-support.com")
    password = "secret123"
    phone = factory.Sequence(lambda n: f"+39 055 {n:07d}")
    role = "customer"

    @classmethod
    def create_team_member(cls) -> dict:
        """Team member payload."""
        return cls(name="Test Agent", role="team")

    @classmethod
    def create_admin(cls) -> dict:
        """Admin payload."""
        return cls(name="Test Admin", role="admin")
