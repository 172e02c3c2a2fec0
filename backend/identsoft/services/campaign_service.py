"""Campaign service: tenant-scoped outreach campaigns (records only, no delivery)."""

import logging

from sqlalchemy.orm import Session

from ..db.session import unit_of_work
from ..domain.entities import Campaign
from ..domain.interfaces import ICampaignRepository
from ..repositories.campaign_repo import CampaignRepository
from ..schemas.dtos import CampaignCreateRequest
from .reference_validator import ReferenceValidator

logger = logging.getLogger(__name__)


class CampaignService:
    def __init__(
        self,
        db: Session,
        campaign_repo: ICampaignRepository,
        reference_validator: ReferenceValidator,
    ) -> None:
        self.db = db
        self.campaign_repo = campaign_repo
        self.reference_validator = reference_validator

    @classmethod
    def from_session(cls, db: Session) -> "CampaignService":
        return cls(db, CampaignRepository(db), ReferenceValidator.from_session(db))

    def create_campaign(self, request: CampaignCreateRequest) -> Campaign:
        """Create a draft campaign for a company."""
        with unit_of_work(self.db):
            self.reference_validator.require_tenant(request.company_id)
            campaign = self.campaign_repo.create(
                Campaign(
                    company_id=request.company_id,
                    name=request.name,
                    type=request.type,
                    subject=request.subject,
                    message=request.message,
                    status="draft",
                    scheduled_date=request.scheduled_date,
                    recipient_count=0,
                )
            )
        logger.info(
            "Campaign created",
            extra={
                "context": {
                    "campaign_id": campaign.id,
                    "company_id": campaign.company_id,
                    "type": campaign.type,
                }
            },
        )
        return campaign
