"""Lead repository for DynamoDB operations."""

from flashsynch.models.lead import Lead
from flashsynch.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize lead repository."""
        super().__init__(Lead, table_name)

    def get_by_id(self, lead_id: str) -> Lead | None:
        """Get lead by ID.

        Args:
            lead_id: The lead ID.

        Returns:
            Lead or None if not found.
        """
        return self.get(pk=f"LEAD#{lead_id}", sk="LEAD")

    def create_lead(self, lead: Lead) -> Lead:
        """Create a new lead. Every submission becomes its own record."""
        return self.create(lead)

    def list_by_owner(
        self,
        owner_id: str,
        card_id: str | None = None,
        status: str | None = None,
    ) -> list[Lead]:
        """List an owner's leads, newest first.

        Args:
            owner_id: The card owner's user ID.
            card_id: Optional originating card filter.
            status: Optional workflow status filter.

        Returns:
            Matching leads.
        """
        filters = []
        names: dict[str, str] = {}
        values: dict[str, str] = {}
        if card_id:
            filters.append("card_id = :card_id")
            values[":card_id"] = card_id
        if status:
            filters.append("#status = :status")
            names["#status"] = "status"
            values[":status"] = status

        return self.query_all(
            pk=f"OWNER#{owner_id}#LEADS",
            index_name="GSI1",
            scan_forward=False,
            filter_expression=" AND ".join(filters) or None,
            expression_names=names or None,
            expression_values=values or None,
        )
