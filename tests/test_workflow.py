"""
Tests for the approval workflow operations and workflow endpoints.
"""
import pytest
from sqlalchemy.exc import OperationalError

from signoff import workflow as approvals
from signoff.models import Activity, ApprovalComment, ApprovalStep, ApprovalWorkflow
from signoff.responses import AlreadyDecided, Forbidden, InvalidInput, NotFound, Unauthenticated, Unexpected
from signoff.schemas.approval import WorkflowCreate

from .conftest import headers_for, make_user


class TestDecisionOperations:
    """Test approve_step / reject_step directly against the session."""

    def test_round_trip_after_reject(self, db, approver, pending_step):
        message = approvals.reject_step(db, pending_step.id, approver, "Mauvais taux de TPS")
        assert message == "Rejet enregistré avec succès"

        db.expire_all()
        step = db.query(ApprovalStep).filter(ApprovalStep.id == pending_step.id).one()
        assert step.status == "rejected"
        assert step.comments == "Mauvais taux de TPS"
        assert step.decision_date is not None

    def test_terminal_state_is_final(self, db, approver, pending_step):
        approvals.approve_step(db, pending_step.id, approver, "ok")
        decided = db.get(ApprovalStep, pending_step.id)
        snapshot = (decided.status, decided.decision_date, decided.comments)

        with pytest.raises(AlreadyDecided):
            approvals.reject_step(db, pending_step.id, approver, "trop tard")
        with pytest.raises(AlreadyDecided):
            approvals.approve_step(db, pending_step.id, approver)

        db.expire_all()
        step = db.get(ApprovalStep, pending_step.id)
        assert (step.status, step.decision_date, step.comments) == snapshot
        assert db.query(Activity).count() == 1
        assert db.query(ApprovalComment).count() == 1

    def test_missing_actor(self, db, pending_step):
        with pytest.raises(Unauthenticated):
            approvals.approve_step(db, pending_step.id, None)
        with pytest.raises(Unauthenticated):
            approvals.reject_step(db, pending_step.id, None, "")

    def test_precondition_order(self, db, approver, other_user, make_workflow):
        """Existence is checked before authorization, authorization before status."""
        with pytest.raises(NotFound):
            approvals.approve_step(db, 4242, other_user)

        decided = make_workflow([approver], status="approved").steps[0]
        with pytest.raises(Forbidden):
            approvals.approve_step(db, decided.id, other_user)
        with pytest.raises(AlreadyDecided):
            approvals.approve_step(db, decided.id, approver)

    def test_reject_requires_reason_before_lookup(self, db, other_user):
        with pytest.raises(InvalidInput):
            approvals.reject_step(db, 4242, other_user, "   ")

    def test_lost_race_reports_already_decided(self, db, approver, pending_step, monkeypatch):
        """A step decided between the read and the write is not decided twice."""
        real_transition = approvals._transition

        def racing_transition(session, step_id, status, comments):
            session.query(ApprovalStep).filter(ApprovalStep.id == step_id).update(
                {ApprovalStep.status: "approved"}, synchronize_session=False
            )
            return real_transition(session, step_id, status, comments)

        monkeypatch.setattr(approvals, "_transition", racing_transition)

        with pytest.raises(AlreadyDecided):
            approvals.reject_step(db, pending_step.id, approver, "raison")

        assert db.query(Activity).count() == 0
        assert db.query(ApprovalComment).count() == 0

    def test_failed_audit_write_rolls_back_decision(self, db, approver, pending_step, monkeypatch):
        def broken_log_activity(*args, **kwargs):
            raise OperationalError("INSERT INTO activities", {}, Exception("database is locked"))

        monkeypatch.setattr(approvals, "log_activity", broken_log_activity)

        with pytest.raises(Unexpected) as exc_info:
            approvals.approve_step(db, pending_step.id, approver, "looks good")

        assert exc_info.value.status_code == 500
        assert "locked" not in exc_info.value.detail
        step = db.get(ApprovalStep, pending_step.id)
        assert step.status == "pending"
        assert step.decision_date is None
        assert db.query(ApprovalComment).count() == 0

    def test_storage_failure_returns_generic_500(self, client, db, approver, pending_step, monkeypatch):
        def broken_log_activity(*args, **kwargs):
            raise OperationalError("INSERT INTO activities", {}, Exception("disk I/O error"))

        monkeypatch.setattr(approvals, "log_activity", broken_log_activity)

        response = client.post(
            f"/api/approvals/{pending_step.id}/approve",
            headers=headers_for(approver),
            json={},
        )
        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "INTERNAL_ERROR"
        assert body["error"] == "Erreur lors de l'approbation"
        assert "disk" not in response.text


class TestCreateWorkflow:
    """Test POST /api/approvals."""

    def test_create_workflow(self, client, db, owner, approver, other_user):
        response = client.post(
            "/api/approvals",
            headers=headers_for(owner),
            json={
                "resource_type": "quote",
                "resource_id": "Q-2024-17",
                "name": "Soumission rénovation",
                "approver_ids": [approver.id, other_user.id, approver.id],
                "required_approvers": 2,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Workflow d'approbation créé avec succès"

        workflow = db.get(ApprovalWorkflow, data["workflow_id"])
        assert workflow.created_by == owner.id
        assert workflow.status == "pending"
        assert [(s.approver_id, s.step_order, s.status) for s in workflow.steps] == [
            (approver.id, 1, "pending"),
            (other_user.id, 2, "pending"),
        ]

        activity = db.query(Activity).one()
        assert activity.action == "approval_workflow_created"
        assert activity.extra_data == {
            "workflow_id": workflow.id,
            "resource_type": "quote",
            "resource_id": "Q-2024-17",
            "approver_count": 2,
        }

    def test_default_name(self, client, db, owner, approver):
        response = client.post(
            "/api/approvals",
            headers=headers_for(owner),
            json={"resource_type": "expense", "resource_id": "E-1", "approver_ids": [approver.id]},
        )
        workflow = db.get(ApprovalWorkflow, response.json()["workflow_id"])
        assert workflow.name == "Approbation expense"

    def test_missing_fields(self, client, owner):
        response = client.post(
            "/api/approvals",
            headers=headers_for(owner),
            json={"resource_type": "invoice", "resource_id": "inv-9", "approver_ids": []},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_unknown_resource_type(self, client, db, owner, approver):
        response = client.post(
            "/api/approvals",
            headers=headers_for(owner),
            json={"resource_type": "timesheet", "resource_id": "T-1", "approver_ids": [approver.id]},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "INVALID_INPUT"
        assert body["details"]["errors"][0]["loc"] == ["body", "resource_type"]
        assert db.query(ApprovalWorkflow).count() == 0

    def test_member_cannot_create(self, client, approver, other_user):
        response = client.post(
            "/api/approvals",
            headers=headers_for(approver),
            json={"resource_type": "invoice", "resource_id": "inv-9", "approver_ids": [other_user.id]},
        )
        assert response.status_code == 403

    def test_user_without_organization(self, client, db, approver):
        loner = make_user(db, "loner@example.com", role="owner")
        response = client.post(
            "/api/approvals",
            headers=headers_for(loner),
            json={"resource_type": "invoice", "resource_id": "inv-9", "approver_ids": [approver.id]},
        )
        assert response.status_code == 404

    def test_approver_from_other_organization(self, client, db, owner):
        outsider = make_user(db, "outsider@example.com")
        response = client.post(
            "/api/approvals",
            headers=headers_for(owner),
            json={"resource_type": "invoice", "resource_id": "inv-9", "approver_ids": [outsider.id]},
        )
        assert response.status_code == 400
        assert response.json()["details"] == {"approver_ids": [outsider.id]}

    def test_required_approvers_out_of_range(self, db, owner, approver):
        data = WorkflowCreate(
            resource_type="project",
            resource_id="P-3",
            approver_ids=[approver.id],
            required_approvers=2,
        )
        with pytest.raises(InvalidInput):
            approvals.create_workflow(db, owner, data)
        assert db.query(ApprovalWorkflow).count() == 0


class TestWorkflowStatus:
    """Test the derived workflow status and GET /api/approvals/workflows/{id}."""

    def test_status_follows_decisions(self, db, approver, other_user, make_workflow):
        workflow = make_workflow([approver, other_user])
        workflow.required_approvers = 2
        db.commit()

        approvals.approve_step(db, workflow.steps[0].id, approver)
        db.refresh(workflow)
        assert workflow.status == "pending"

        approvals.approve_step(db, workflow.steps[1].id, other_user)
        db.refresh(workflow)
        assert workflow.status == "approved"

    def test_any_rejection_rejects_workflow(self, db, approver, other_user, make_workflow):
        workflow = make_workflow([approver, other_user])
        approvals.approve_step(db, workflow.steps[0].id, approver)
        approvals.reject_step(db, workflow.steps[1].id, other_user, "non")
        db.refresh(workflow)
        assert workflow.status == "rejected"

    def test_get_workflow_detail(self, client, approver, owner, pending_step):
        headers = headers_for(approver)
        client.post(f"/api/approvals/{pending_step.id}/reject", headers=headers, json={"comments": "Prix trop élevé"})

        response = client.get(f"/api/approvals/workflows/{pending_step.workflow_id}", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "rejected"
        assert data["steps"][0]["status"] == "rejected"
        assert data["comments"][0]["comment"] == "❌ Rejeté: Prix trop élevé"
        assert data["creator"]["email"] == owner.email

    def test_get_workflow_other_organization(self, client, db, pending_step):
        outsider = make_user(db, "outsider@example.com")
        response = client.get(
            f"/api/approvals/workflows/{pending_step.workflow_id}",
            headers=headers_for(outsider),
        )
        assert response.status_code == 404
