from sqlalchemy.exc import OperationalError

from intranet.services.compliance_service import ComplianceService
from intranet.services.setting_service import BLOCK_ACCESS_KEY
from tests.utils import create_content, create_profile, create_signature, create_video, set_setting


def test_no_contents_means_nothing_pending(db_session):
    user = create_profile(db_session)
    status = ComplianceService().get_status(db_session, user)

    assert status.has_pending is False
    assert status.blocks is False


def test_first_unsigned_content_in_creation_order(db_session):
    user = create_profile(db_session)
    first = create_video(db_session, minutes=1, title="Primeiro")
    second = create_content(db_session, minutes=2, title="Segundo")
    service = ComplianceService()

    assert service.get_status(db_session, user).pending_content_id == first.id

    create_signature(db_session, first, user)
    assert service.get_status(db_session, user).pending_content_id == second.id

    create_signature(db_session, second, user)
    assert service.get_status(db_session, user).has_pending is False


def test_status_is_stable_without_writes(db_session):
    user = create_profile(db_session)
    create_content(db_session, minutes=1)
    create_content(db_session, minutes=2, title="Outro")
    service = ComplianceService()

    assert service.get_status(db_session, user) == service.get_status(db_session, user)


def test_failed_signature_does_not_count(db_session):
    user = create_profile(db_session)
    content = create_content(db_session)
    create_signature(db_session, content, user, success=False)

    assert ComplianceService().get_status(db_session, user).pending_content_id == content.id


def test_inactive_content_is_ignored(db_session):
    user = create_profile(db_session)
    create_content(db_session, active=False)
    assert ComplianceService().get_status(db_session, user).has_pending is False


def test_audience_buckets(db_session):
    owner = create_profile(db_session, full_name="Dono", email="dono@example.com", role="franqueado")
    staff = create_profile(db_session, full_name="Ana", email="ana@example.com", role="colaborador")
    manager = create_profile(db_session, full_name="Gi", email="gi@example.com", role="gestor_setor")
    for_owners = create_content(db_session, minutes=1, target_audience="franqueados")
    for_staff = create_content(db_session, minutes=2, target_audience="colaboradores")
    service = ComplianceService()

    assert service.get_status(db_session, owner).pending_content_id == for_owners.id
    assert service.get_status(db_session, staff).pending_content_id == for_staff.id
    # Every non-franchisee role falls in the collaborator bucket
    assert service.get_status(db_session, manager).pending_content_id == for_staff.id


def test_block_access_setting_false_reports_without_blocking(db_session):
    user = create_profile(db_session)
    content = create_content(db_session)
    set_setting(db_session, BLOCK_ACCESS_KEY, "false")

    status = ComplianceService().get_status(db_session, user)
    assert status.pending_content_id == content.id
    assert status.block_access is False
    assert status.blocks is False


def test_block_access_defaults_to_true(db_session):
    user = create_profile(db_session)
    create_content(db_session)
    assert ComplianceService().get_status(db_session, user).blocks is True


def test_read_failure_fails_open(db_session, monkeypatch):
    user = create_profile(db_session)
    create_content(db_session)
    service = ComplianceService()

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(service, "list_candidates", broken)

    status = service.get_status(db_session, user)
    assert status.has_pending is False
    assert status.blocks is False
    assert status.degraded is True


def test_role_matches_audience_for_reports():
    assert ComplianceService.role_matches_audience("gestor_setor", "ambos") is True
    assert ComplianceService.role_matches_audience("gestor_setor", "colaboradores") is False
    assert ComplianceService.role_matches_audience("colaborador", "colaboradores") is True
    assert ComplianceService.role_matches_audience("franqueado", "colaboradores") is False
