from flask import Blueprint, request

from ..core.api_utils import api_response, get_json_body
from ..core.limiter_config import limiter
from ..db.session import SessionLocal
from ..schemas.dtos import CampaignCreateRequest, parse_filters, to_json_dict
from ..services.campaign_service import CampaignService
from ..services.query_service import QueryService

campaign_bp = Blueprint("campaign", __name__, url_prefix="/api")


@campaign_bp.route("/campaigns", methods=["POST"])
@limiter.limit("30 per minute")
def create_campaign():
    campaign_request = CampaignCreateRequest.from_dict(get_json_body())
    db = SessionLocal()
    try:
        campaign = CampaignService.from_session(db).create_campaign(campaign_request)
        return api_response(True, "Campaign created", to_json_dict(campaign), 201)
    finally:
        db.close()


@campaign_bp.route("/campaigns", methods=["GET"])
def list_campaigns():
    filters = parse_filters(request.args, "company_id")
    db = SessionLocal()
    try:
        campaigns = QueryService(db).list_campaigns(**filters)
        return api_response(
            True, "Campaigns retrieved", [to_json_dict(c) for c in campaigns], 200
        )
    finally:
        db.close()
