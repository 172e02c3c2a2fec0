from typing import List, Optional

from sqlalchemy.orm import Session

from ..db.base import Campaign as DbCampaign
from ..domain.entities import Campaign
from ..domain.interfaces import ICampaignRepository
from .filters import filtered_query


class CampaignRepository(ICampaignRepository):
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(self, campaign_id: int) -> Optional[Campaign]:
        db_campaign = self.db.get(DbCampaign, campaign_id)
        return self._to_domain(db_campaign) if db_campaign else None

    def list(self, company_id: Optional[int] = None) -> List[Campaign]:
        query = filtered_query(self.db, DbCampaign, company_id=company_id)
        return [self._to_domain(c) for c in query.all()]

    def create(self, campaign: Campaign) -> Campaign:
        db_campaign = DbCampaign(
            company_id=campaign.company_id,
            name=campaign.name,
            type=campaign.type,
            subject=campaign.subject,
            message=campaign.message,
            status=campaign.status,
            scheduled_date=campaign.scheduled_date,
            recipient_count=campaign.recipient_count,
        )
        self.db.add(db_campaign)
        self.db.flush()
        self.db.refresh(db_campaign)
        return self._to_domain(db_campaign)

    def _to_domain(self, db_campaign: DbCampaign) -> Campaign:
        return Campaign(
            id=db_campaign.id,
            company_id=db_campaign.company_id,
            name=db_campaign.name,
            type=db_campaign.type,
            subject=db_campaign.subject,
            message=db_campaign.message,
            status=db_campaign.status,
            scheduled_date=db_campaign.scheduled_date,
            sent_date=db_campaign.sent_date,
            recipient_count=db_campaign.recipient_count,
            created_at=db_campaign.created_at,
        )
