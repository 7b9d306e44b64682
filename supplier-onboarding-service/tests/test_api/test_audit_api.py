import pytest
import uuid
from unittest.mock import patch
from sqlalchemy import select, func

from app.models.audit import AuditRecord
from app.models.permission import UserRole, BackendRole, RoleMenuPermission, UserBackendRole
from app.models.supplier import Supplier
from app.services.provisioning_service import ProvisioningService
from conftest import auth_headers, create_menus, create_supplier
from shared.models import AppRole, AuditStatus, SupplierStatus, Terminal


async def count(db, model, *criteria):
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def supplier_status(db, supplier_id) -> SupplierStatus:
    result = await db.execute(
        select(Supplier).where(Supplier.id == supplier_id).execution_options(populate_existing=True)
    )
    return result.scalar_one().status


class TestAdminAuditAuthorization:

    @pytest.mark.asyncio
    async def test_requires_token(self, client, pending_supplier):
        response = await client.post("/admin-audit", json={"action": "list_pending"})

        assert response.status_code == 401
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_malformed_body_without_token_is_401(self, client):
        response = await client.post(
            "/admin-audit", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Missing authorization"}

    @pytest.mark.asyncio
    async def test_malformed_body_with_token_is_400(self, client, admin_headers):
        response = await client.post(
            "/admin-audit",
            content=b"{not json",
            headers={"Content-Type": "application/json", **admin_headers}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "JSON decode error"}

    @pytest.mark.asyncio
    async def test_rejects_invalid_token(self, client):
        response = await client.post(
            "/admin-audit",
            json={"action": "list_pending"},
            headers={"Authorization": "Bearer not-a-token"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,params", [
        ("list_pending", {}),
        ("get_supplier_detail", {}),
        ("approve", {}),
        ("reject", {"reason": "Incomplete documents"}),
        ("suspend", {"reason": "X"}),
        ("restore", {}),
        ("get_statistics", {}),
    ])
    async def test_non_admin_is_forbidden_and_nothing_changes(
        self, client, db_session, pending_supplier, supplier_headers, action, params
    ):
        """Test that every action by a non-admin caller returns 403 and mutates nothing."""
        supplier_id = pending_supplier.id
        body = {"action": action, "supplierId": str(supplier_id), **params}

        response = await client.post("/admin-audit", json=body, headers=supplier_headers)

        assert response.status_code == 403
        assert response.json() == {"error": "Admin role required"}
        assert await count(db_session, AuditRecord) == 0
        assert await count(db_session, UserRole) == 0
        assert await supplier_status(db_session, supplier_id) == SupplierStatus.PENDING

    @pytest.mark.asyncio
    async def test_supplier_role_is_not_enough(self, client, db_session, pending_supplier):
        user_id = uuid.uuid4()
        db_session.add(UserRole(user_id=user_id, role=AppRole.SUPPLIER))
        await db_session.commit()

        response = await client.post(
            "/admin-audit",
            json={"action": "approve", "supplierId": str(pending_supplier.id)},
            headers=auth_headers(user_id)
        )

        assert response.status_code == 403


class TestAdminAuditActions:

    @pytest.mark.asyncio
    async def test_end_to_end_approval(self, client, db_session, pending_supplier, supplier_menus, admin_headers):
        """Test registration approval from pending record to provisioned supplier access."""
        supplier_id, user_id = pending_supplier.id, pending_supplier.user_id
        body = {"action": "approve", "supplierId": str(supplier_id)}

        response = await client.post("/admin-audit", json=body, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await supplier_status(db_session, supplier_id) == SupplierStatus.APPROVED
        assert await count(db_session, AuditRecord, AuditRecord.status == AuditStatus.APPROVED) == 1
        assert await count(db_session, UserRole, UserRole.user_id == user_id, UserRole.role == AppRole.SUPPLIER) == 1
        role = (await db_session.execute(select(BackendRole))).scalar_one()
        assert role.code == "supplier_default"
        assignments = await count(
            db_session, UserBackendRole, UserBackendRole.user_id == user_id, UserBackendRole.role_id == role.id
        )
        assert assignments == 1

        response = await client.post("/admin-audit", json=body, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await count(db_session, UserBackendRole) == assignments
        assert await count(db_session, UserRole, UserRole.user_id == user_id) == 1
        assert await count(db_session, BackendRole) == 1

    @pytest.mark.asyncio
    async def test_menu_snapshot_is_stale_for_later_approvals(self, client, db_session, supplier_menus, admin_headers):
        """Test that a menu added after the default role exists does not reach it."""
        first = await create_supplier(db_session)
        second = await create_supplier(db_session)
        first_id, second_id, second_user = first.id, second.id, second.user_id

        await client.post("/admin-audit", json={"action": "approve", "supplierId": str(first_id)}, headers=admin_headers)
        await create_menus(db_session, Terminal.SUPPLIER, ["complaints"])
        await client.post("/admin-audit", json={"action": "approve", "supplierId": str(second_id)}, headers=admin_headers)

        role = (await db_session.execute(select(BackendRole))).scalar_one()
        assert await count(db_session, RoleMenuPermission, RoleMenuPermission.role_id == role.id) == 5

        response = await client.get("/menus?terminal=supplier", headers=auth_headers(second_user))
        assert response.status_code == 200
        assert len(response.json()["menus"]) == 5

    @pytest.mark.asyncio
    async def test_provisioning_failure_still_reports_success(
        self, client, db_session, pending_supplier, supplier_menus, admin_headers
    ):
        supplier_id, user_id = pending_supplier.id, pending_supplier.user_id

        with patch.object(ProvisioningService, "ensure_role_assignment", side_effect=RuntimeError("db timeout")):
            response = await client.post(
                "/admin-audit", json={"action": "approve", "supplierId": str(supplier_id)}, headers=admin_headers
            )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert await supplier_status(db_session, supplier_id) == SupplierStatus.APPROVED
        assert await count(db_session, UserRole, UserRole.user_id == user_id) == 0

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, client, db_session, pending_supplier, admin_headers):
        supplier_id = pending_supplier.id

        for body in (
            {"action": "reject", "supplierId": str(supplier_id)},
            {"action": "reject", "supplierId": str(supplier_id), "reason": "   "},
        ):
            response = await client.post("/admin-audit", json=body, headers=admin_headers)
            assert response.status_code == 400
            assert "error" in response.json()

        assert await supplier_status(db_session, supplier_id) == SupplierStatus.PENDING
        assert await count(db_session, AuditRecord) == 0

    @pytest.mark.asyncio
    async def test_reject_then_detail_shows_reason(self, client, db_session, pending_supplier, admin_headers):
        supplier_id = str(pending_supplier.id)

        response = await client.post(
            "/admin-audit",
            json={"action": "reject", "supplierId": supplier_id, "reason": "Business license expired"},
            headers=admin_headers
        )
        assert response.json() == {"success": True}

        response = await client.post(
            "/admin-audit", json={"action": "get_supplier_detail", "supplierId": supplier_id}, headers=admin_headers
        )
        supplier = response.json()["supplier"]
        assert supplier["status"] == "rejected"
        assert supplier["rejection_reason"] == "Business license expired"
        assert supplier["standing"] == {"kind": "rejected", "reason": "Business license expired"}
        assert supplier["profile"]["full_name"] == "Zhang San"

    @pytest.mark.asyncio
    async def test_suspend_and_restore(self, client, db_session, pending_supplier, supplier_menus, admin_headers):
        supplier_id = str(pending_supplier.id)
        await client.post("/admin-audit", json={"action": "approve", "supplierId": supplier_id}, headers=admin_headers)

        response = await client.post(
            "/admin-audit", json={"action": "suspend", "supplierId": supplier_id, "reason": "X"}, headers=admin_headers
        )
        assert response.json() == {"success": True}

        detail = await client.post(
            "/admin-audit", json={"action": "get_supplier_detail", "supplierId": supplier_id}, headers=admin_headers
        )
        assert detail.json()["supplier"]["standing"] == {"kind": "suspended", "note": "X"}

        response = await client.post(
            "/admin-audit", json={"action": "approve", "supplierId": supplier_id}, headers=admin_headers
        )
        assert response.status_code == 400

        response = await client.post(
            "/admin-audit", json={"action": "restore", "supplierId": supplier_id}, headers=admin_headers
        )
        assert response.json() == {"success": True}

        detail = await client.post(
            "/admin-audit", json={"action": "get_supplier_detail", "supplierId": supplier_id}, headers=admin_headers
        )
        supplier = detail.json()["supplier"]
        assert supplier["status"] == "approved"
        assert supplier["suspension_note"] is None
        assert supplier["standing"] == {"kind": "active"}

    @pytest.mark.asyncio
    async def test_illegal_transition_is_400(self, client, db_session, admin_headers):
        supplier = await create_supplier(db_session, status=SupplierStatus.REJECTED)

        response = await client.post(
            "/admin-audit", json={"action": "approve", "supplierId": str(supplier.id)}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot move supplier from rejected to approved"}

    @pytest.mark.asyncio
    async def test_unknown_supplier_is_404(self, client, admin_headers):
        response = await client.post(
            "/admin-audit", json={"action": "approve", "supplierId": str(uuid.uuid4())}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Supplier not found"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {"action": "delete_supplier", "supplierId": "00000000-0000-0000-0000-000000000000"},
        {"supplierId": "00000000-0000-0000-0000-000000000000"},
        {"action": "approve"},
        {"action": "approve", "supplierId": "not-a-uuid"},
        {"action": "list_pending", "status": "archived"},
    ])
    async def test_malformed_commands_are_400(self, client, admin_headers, body):
        response = await client.post("/admin-audit", json=body, headers=admin_headers)

        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.asyncio
    async def test_list_pending_default_and_all(self, client, db_session, admin_headers):
        pending = await create_supplier(db_session)
        await create_supplier(db_session, status=SupplierStatus.APPROVED)

        response = await client.post("/admin-audit", json={"action": "list_pending"}, headers=admin_headers)
        suppliers = response.json()["suppliers"]
        assert [s["id"] for s in suppliers] == [str(pending.id)]
        assert suppliers[0]["profile"]["email"] == "contact@acme.example"

        response = await client.post(
            "/admin-audit", json={"action": "list_pending", "status": "all"}, headers=admin_headers
        )
        assert len(response.json()["suppliers"]) == 2

    @pytest.mark.asyncio
    async def test_statistics_and_recent_audits(self, client, db_session, pending_supplier, supplier_menus, admin_headers):
        await client.post(
            "/admin-audit", json={"action": "approve", "supplierId": str(pending_supplier.id)}, headers=admin_headers
        )

        stats = (await client.post("/admin-audit", json={"action": "get_statistics"}, headers=admin_headers)).json()
        assert stats["total"] == 1
        assert stats["approved"] == 1
        assert stats["byType"] == {"enterprise": 1, "overseas": 0, "individual": 0}

        audits = (await client.post("/admin-audit", json={"action": "get_recent_audits"}, headers=admin_headers)).json()
        assert len(audits["audits"]) == 1
        assert audits["audits"][0]["status"] == "approved"
        assert audits["audits"][0]["audit_type"] == "registration"
