"""
Component Tests for the Review Coordinator

review_submission() against the in-memory repository, including
promotion of approved content into the live records.
"""

import json

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.dashboard_service.protocols import PromotionError
from tests.contracts.dashboard.data_contract import (
    ApprovalStatus,
    DashboardEntityType,
    ErrorKind,
    LedgerStatus,
    ReviewAction,
)


@pytest.fixture
def pending_socials(repository, factory, campaign, submitter_id):
    """Socials submitted for review with an open ledger row"""
    socials = repository.add_entity(
        factory.make_socials(
            campaign_id=campaign.campaign_id,
            status=ApprovalStatus.PENDING,
            submitted_by=submitter_id,
            twitter="https://twitter.com/new",
            instagram=" ",
        )
    )
    repository.add_approval(
        factory.make_approval(campaign_id=campaign.campaign_id, entity_types=[DashboardEntityType.SOCIALS])
    )
    return socials


class TestApprove:
    """Approval and promotion"""

    @pytest.mark.asyncio
    async def test_approve_socials_updates_issuer(self, review_service, repository, campaign, issuer, pending_socials, admin_id):
        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        # Then
        assert result.success is True
        assert result.error is None
        assert result.ledger_status == LedgerStatus.APPROVED
        assert repository.stored(pending_socials).status == ApprovalStatus.APPROVED
        assert repository.stored(pending_socials).reviewed_by == admin_id

        live = repository.issuers[issuer.issuer_id]
        assert live.twitter == "https://twitter.com/new"
        assert live.linked_in == pending_socials.linked_in
        assert live.instagram is None

        assert repository.approvals[campaign.campaign_id].status == LedgerStatus.APPROVED
        assert repository.approvals[campaign.campaign_id].reviewed_by == admin_id

        [entity_result] = result.results
        assert entity_result.entity_type == DashboardEntityType.SOCIALS
        assert entity_result.reviewed is True
        assert entity_result.promoted is True
        assert entity_result.status == ApprovalStatus.APPROVED
        assert entity_result.entity_ids == [pending_socials.id]

    @pytest.mark.asyncio
    async def test_approve_records_history(self, review_service, repository, campaign, pending_socials, admin_id):
        await review_service.review_submission(
            campaign.campaign_id, admin_id, ["dashboard-socials"], "approve", comment="Nice"
        )

        [record] = repository.history_for(pending_socials.id)
        assert record.status == ApprovalStatus.APPROVED
        assert record.user_id == admin_id
        assert record.comment == "Nice"

    @pytest.mark.asyncio
    async def test_approve_campaign_info_upserts_live_record(self, review_service, repository, factory, campaign, admin_id):
        """Approved campaign info replaces the live content and keeps other live fields"""
        # Given
        repository.campaign_infos[campaign.campaign_id] = factory.make_live_campaign_info(campaign.campaign_id)
        info = repository.add_entity(factory.make_campaign_info(
            campaign_id=campaign.campaign_id,
            status=ApprovalStatus.PENDING,
            milestones=["Second site"],
            investor_pitch="Fresh pitch",
        ))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.CAMPAIGN_INFO], ReviewAction.APPROVE
        )

        # Then
        assert result.success is True
        live = repository.campaign_infos[campaign.campaign_id]
        assert live.investor_pitch == "Fresh pitch"
        assert json.loads(live.milestones) == ["Second site"]
        assert live.is_show_pitch is True
        assert live.financial_history == "Profitable since 2019"
        assert repository.stored(info).status == ApprovalStatus.APPROVED

    @pytest.mark.asyncio
    async def test_reject_campaign_info_leaves_live_record(self, review_service, repository, factory, campaign, admin_id):
        # Given
        before = factory.make_live_campaign_info(campaign.campaign_id)
        repository.campaign_infos[campaign.campaign_id] = before
        info = repository.add_entity(factory.make_campaign_info(
            campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING, investor_pitch="Fresh pitch",
        ))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.CAMPAIGN_INFO], ReviewAction.REJECT, "Too short"
        )

        # Then
        assert result.success is True
        assert repository.campaign_infos[campaign.campaign_id] == before
        assert repository.stored(info).status == ApprovalStatus.REJECTED
        assert repository.stored(info).comment == "Too short"

    @pytest.mark.asyncio
    async def test_approve_summary_updates_campaign(self, review_service, repository, factory, campaign, admin_id):
        repository.add_entity(factory.make_campaign_summary(
            campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING, summary="New summary", tag_line="New tag",
        ))

        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.CAMPAIGN_SUMMARY], ReviewAction.APPROVE
        )

        assert result.success is True
        assert repository.campaigns[campaign.campaign_id].summary == "New summary"
        assert repository.campaigns[campaign.campaign_id].tag_line == "New tag"

    @pytest.mark.asyncio
    async def test_approve_pending_owners_only(self, review_service, repository, factory, campaign, admin_id):
        # Given
        approved = repository.add_entity(
            factory.make_owner(campaign_id=campaign.campaign_id, status=ApprovalStatus.APPROVED, name="Old")
        )
        first = repository.add_entity(
            factory.make_owner(campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING, name="Ann")
        )
        second = repository.add_entity(
            factory.make_owner(campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING, name="Bob")
        )

        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.OWNERS], ReviewAction.APPROVE
        )

        # Then
        assert result.success is True
        assert set(result.results[0].entity_ids) == {first.id, second.id}
        assert sorted(owner.title for owner in repository.owners) == ["Ann", "Bob"]
        assert repository.history_for(approved.id) == []

    @pytest.mark.asyncio
    async def test_socials_without_issuer_not_promoted(self, review_service, repository, factory, admin_id):
        # Given
        campaign = repository.add_campaign(factory.make_campaign(issuer_id=None))
        repository.add_entity(factory.make_socials(campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        # Then
        assert result.success is True
        assert result.results[0].reviewed is True
        assert result.results[0].promoted is False
        assert result.results[0].promotion_error is None


class TestReviewValidation:
    """Failures before anything is written"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("comment", [None, "", "   "])
    async def test_reject_requires_comment(self, review_service, repository, campaign, pending_socials, admin_id, comment):
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.REJECT, comment
        )

        assert result.success is False
        assert result.error == "Comment is required when rejecting"
        assert result.error_kind == ErrorKind.VALIDATION
        assert repository.stored(pending_socials).status == ApprovalStatus.PENDING
        assert repository.approvals[campaign.campaign_id].status == LedgerStatus.PENDING

    @pytest.mark.asyncio
    async def test_invalid_action(self, review_service, campaign, admin_id):
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], "escalate"
        )

        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert "escalate" in result.error

    @pytest.mark.asyncio
    async def test_unknown_entity_type(self, review_service, campaign, admin_id):
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, ["dashboard-videos"], ReviewAction.APPROVE
        )

        assert result.success is False
        assert result.error == "Unknown entity type: dashboard-videos"

    @pytest.mark.asyncio
    async def test_campaign_not_found(self, review_service, admin_id):
        result = await review_service.review_submission(
            "cmp_missing", admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        assert result.success is False
        assert result.error_kind == ErrorKind.NOT_FOUND


class TestReviewEntityStates:
    """Missing and wrong-state entities"""

    @pytest.mark.asyncio
    async def test_missing_entity_skipped(self, review_service, repository, campaign, pending_socials, admin_id):
        # When
        result = await review_service.review_submission(
            campaign.campaign_id,
            admin_id,
            [DashboardEntityType.CAMPAIGN_SUMMARY, DashboardEntityType.SOCIALS],
            ReviewAction.APPROVE,
        )

        # Then
        assert result.success is True
        summary_result, socials_result = result.results
        assert summary_result.skipped is True
        assert summary_result.reviewed is False
        assert socials_result.reviewed is True
        assert repository.stored(pending_socials).status == ApprovalStatus.APPROVED

    @pytest.mark.asyncio
    async def test_wrong_state_fails_whole_review(self, review_service, repository, factory, campaign, pending_socials, admin_id):
        """A draft that is not pending fails the call before any change"""
        # Given
        repository.add_entity(factory.make_campaign_summary(campaign_id=campaign.campaign_id))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id,
            admin_id,
            [DashboardEntityType.SOCIALS, DashboardEntityType.CAMPAIGN_SUMMARY],
            ReviewAction.APPROVE,
        )

        # Then
        assert result.success is False
        assert result.error_kind == ErrorKind.CONFLICT
        assert "Dashboard Campaign Summary" in result.error
        assert repository.stored(pending_socials).status == ApprovalStatus.PENDING
        assert repository.history == []
        assert repository.approvals[campaign.campaign_id].status == LedgerStatus.PENDING

    @pytest.mark.asyncio
    async def test_approved_entity_cannot_be_reviewed_again(self, review_service, repository, factory, campaign, admin_id):
        repository.add_entity(factory.make_socials(campaign_id=campaign.campaign_id, status=ApprovalStatus.APPROVED))

        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        assert result.success is False
        assert result.error_kind == ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_owners_without_pending_fail(self, review_service, repository, factory, campaign, admin_id):
        repository.add_entity(factory.make_owner(campaign_id=campaign.campaign_id))

        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.OWNERS], ReviewAction.APPROVE
        )

        assert result.success is False
        assert result.error_kind == ErrorKind.CONFLICT

    @pytest.mark.asyncio
    async def test_storage_failure_mid_loop_rolls_back(self, review_service, repository, factory, campaign, pending_socials, admin_id):
        # Given
        repository.add_entity(factory.make_campaign_summary(campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING))
        repository.set_error("update_approval", ConnectionError("lost connection"))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id,
            admin_id,
            [DashboardEntityType.SOCIALS, DashboardEntityType.CAMPAIGN_SUMMARY],
            ReviewAction.APPROVE,
        )

        # Then
        assert result.success is False
        assert result.error_kind == ErrorKind.INFRASTRUCTURE
        assert repository.stored(pending_socials).status == ApprovalStatus.PENDING
        assert repository.history == []
        assert repository.campaigns[campaign.campaign_id].summary is None


class TestReviewLedger:
    """Ledger close-out"""

    @pytest.mark.asyncio
    async def test_reject_closes_ledger(self, review_service, repository, campaign, pending_socials, admin_id):
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.REJECT, "Broken links"
        )

        entry = repository.approvals[campaign.campaign_id]
        assert result.ledger_status == LedgerStatus.REJECTED
        assert entry.status == LedgerStatus.REJECTED
        assert entry.comment == "Broken links"

    @pytest.mark.asyncio
    async def test_no_pending_ledger_row_still_reviews(self, review_service, repository, factory, campaign, admin_id):
        socials = repository.add_entity(
            factory.make_socials(campaign_id=campaign.campaign_id, status=ApprovalStatus.PENDING)
        )

        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        assert result.success is True
        assert result.ledger_status is None
        assert repository.stored(socials).status == ApprovalStatus.APPROVED
        assert repository.approvals == {}


class TestPromotionFailure:
    """Promotion problems never undo the approval"""

    @pytest.mark.asyncio
    async def test_promotion_error_reported(self, review_service, repository, campaign, pending_socials, admin_id):
        # Given
        repository.set_error("update_issuer", ConnectionError("issuer table locked"))

        # When
        result = await review_service.review_submission(
            campaign.campaign_id, admin_id, [DashboardEntityType.SOCIALS], ReviewAction.APPROVE
        )

        # Then
        assert result.success is True
        [entity_result] = result.results
        assert entity_result.promoted is False
        assert "issuer table locked" in entity_result.promotion_error
        assert repository.stored(pending_socials).status == ApprovalStatus.APPROVED
        assert repository.approvals[campaign.campaign_id].status == LedgerStatus.APPROVED

    @pytest.mark.asyncio
    async def test_promoter_wraps_errors(self, review_service, repository, factory, campaign):
        repository.set_error("insert_owner", ValueError("bad row"))
        owner = factory.make_owner(campaign_id=campaign.campaign_id, status=ApprovalStatus.APPROVED)

        with pytest.raises(PromotionError) as exc_info:
            await review_service.promoter.promote(owner)

        assert str(exc_info.value) == "Failed to move approved data: bad row"
        assert exc_info.value.entity_type == DashboardEntityType.OWNERS
