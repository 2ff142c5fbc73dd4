import pytest
from pydantic import ValidationError

from fixi.models import IssueChanges, IssueListItem, ListPage, Location, Status


def _item(i: int) -> dict:
    return {"id": f"FX-{i}", "status": "Open", "created": "2024-03-01T09:30:00Z"}


def test_list_page_reads_camel_case_fields():
    page = ListPage[IssueListItem].model_validate(
        {"items": [_item(1)], "totalCount": 9, "page": 2, "count": 5, "unknown": True}
    )
    assert page.total_count == 9
    assert page.page == 2
    assert page.items[0].status is Status.OPEN


@pytest.mark.parametrize(
    "payload",
    [
        {"items": [_item(1), _item(2)], "totalCount": 2, "count": 1},
        {"items": [_item(1), _item(2)], "totalCount": 1, "count": 20},
        {"items": [], "totalCount": -1, "count": 20},
        {"items": [], "totalCount": 0, "count": 0},
        {"items": [], "totalCount": 0, "page": 0, "count": 20},
    ],
)
def test_list_page_rejects_inconsistent_bounds(payload):
    with pytest.raises(ValidationError):
        ListPage[IssueListItem].model_validate(payload)


def test_issue_changes_payload_only_has_set_fields():
    changes = IssueChanges(category="lighting", location=Location(latitude=1.5, longitude=2.5))
    assert changes.to_payload() == {
        "category": "lighting",
        "location": {"latitude": 1.5, "longitude": 2.5},
    }


def test_issue_changes_can_clear_a_field():
    assert IssueChanges(private_info=None).to_payload() == {"privateInfo": None}
    assert IssueChanges().to_payload() == {}
