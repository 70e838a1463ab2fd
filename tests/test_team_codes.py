from conftest import AGRICULTURE, EDUCATION, create_team

from models import TeamStatus
from team_codes import domain_prefix, extract_domain_name, generate_team_code, parse_qr_payload, team_prefix


def test_extract_domain_name():
    assert extract_domain_name("GenAI/AgenticAI in Agriculture") == "Agriculture"
    assert extract_domain_name("Wildcard - Environment") == "Environment"
    assert extract_domain_name("Wildcard - Food Production") == "Food Production"
    assert extract_domain_name("Robotics") == "Robotics"


def test_domain_prefix_uses_known_map_then_first_letters():
    assert domain_prefix(AGRICULTURE) == "AG"
    assert domain_prefix(EDUCATION) == "ED"
    assert domain_prefix("Wildcard - Environment") == "WE"
    assert domain_prefix("Wildcard - Food Production") == "WF"
    assert domain_prefix("Healthcare") == "HE"


def test_team_prefix_skips_symbols_and_pads():
    assert team_prefix("code crafters") == "CO"
    assert team_prefix("#1 Team") == "1T"
    assert team_prefix("Q") == "QX"
    assert team_prefix("!!") == "XX"


def test_generate_team_code_counts_domain_teams(db_session):
    create_team(db_session, team_name="First", status=TeamStatus.PENDING)
    team = create_team(db_session, team_name="Byte Bandits")
    assert generate_team_code(db_session, team.domain, team.team_name) == "AGBY003"


def test_generate_team_code_skips_taken_codes(db_session):
    create_team(db_session, team_name="Byte Bandits", team_code="AGBY003", status=TeamStatus.APPROVED)
    create_team(db_session, team_name="Byte Busters")
    assert generate_team_code(db_session, AGRICULTURE, "Byte Busters") == "AGBY004"


def test_parse_qr_payload():
    assert parse_qr_payload("https://hackabhigna.in/#/qr/agby001") == "AGBY001"
    assert parse_qr_payload("https://hackabhigna.in/qr/AGBY001/") == "AGBY001"
    assert parse_qr_payload("  edco012 ") == "EDCO012"
    assert parse_qr_payload("https://github.com/leaderdev") is None
    assert parse_qr_payload("") is None
    assert parse_qr_payload(None) is None
