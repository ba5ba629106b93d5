import pytest

from kilocam.core.actions import ConfirmationRequired
from kilocam.core.browser import DeleteFailedError, DirectoryBrowser, NavigationState, PartialDeleteError, delete_prompt
from kilocam.core.device import DeviceRequestError, DeviceUnavailableError


@pytest.fixture
def browser(client):
    return DirectoryBrowser(client)


def yes(prompt):
    return True


def names(listing):
    return [e.name for e in listing.entries]


def test_starts_at_root():
    state = NavigationState()
    assert state.path == "/"
    assert state.can_go_up is False


def test_root_listing_puts_directories_first(browser):
    listing = browser.load("/")

    assert names(listing) == ["2024-01-01", "2024-01-02", "config.txt", "notes.txt"]
    assert browser.state.path == "/"
    assert browser.state.can_go_up is False


def test_open_resolves_child_path(browser, device):
    browser.load("/")
    listing = browser.open("2024-01-01")

    assert listing.path == "/2024-01-01"
    assert names(listing) == ["images", "img_000.jpg", "log.txt"]
    assert listing.full_path(listing.entries[0]) == "/2024-01-01/images"

    listing = browser.open("images")
    assert browser.state.path == "/2024-01-01/images"
    assert device.requests[-1] == ("/list", {"path": "/2024-01-01/images"})


def test_up_walks_back_to_root(browser):
    browser.load("/2024-01-01/images")
    assert browser.state.can_go_up is True

    browser.up()
    assert browser.state.path == "/2024-01-01"
    browser.up()
    assert browser.state.path == "/"
    assert browser.state.can_go_up is False


def test_open_rejects_nested_names(browser):
    with pytest.raises(ValueError):
        browser.open("a/b")


def test_failed_listing_keeps_rows(browser, device):
    browser.load("/")
    device.unreachable = True

    with pytest.raises(DeviceUnavailableError):
        browser.open("2024-01-01")

    assert browser.state.path == "/2024-01-01"
    assert browser.listing.path == "/"
    assert names(browser.listing) == ["2024-01-01", "2024-01-02", "config.txt", "notes.txt"]


def test_open_after_failed_listing_resolves_against_displayed_rows(browser, device):
    browser.load("/")
    device.unreachable = True
    with pytest.raises(DeviceUnavailableError):
        browser.open("2024-01-01")
    device.unreachable = False

    # Rows on screen are still those of the root
    listing = browser.open("2024-01-02")

    assert listing.path == "/2024-01-02"
    assert browser.state.path == "/2024-01-02"
    assert names(listing) == ["empty"]
    assert device.requests[-1] == ("/list", {"path": "/2024-01-02"})


def test_missing_directory_keeps_rows(browser, device):
    browser.load("/")
    with pytest.raises(DeviceRequestError):
        browser.load("/does-not-exist")
    assert len(browser.listing.entries) == 4


def test_stale_listing_is_discarded(browser, device):
    browser.load("/")
    # The operator navigates elsewhere while /2024-01-01 is still being listed
    device.on_list["/2024-01-01"] = lambda: browser.load("/2024-01-02")

    late = browser.load("/2024-01-01")

    assert late.stale is True
    assert browser.state.path == "/2024-01-02"
    assert browser.listing.path == "/2024-01-02"
    assert names(browser.listing) == ["empty"]


def test_stale_failed_listing_is_discarded(browser, device):
    browser.load("/")
    # The operator navigates elsewhere before the device answers 404
    device.on_list["/gone"] = lambda: browser.load("/2024-01-02")

    late = browser.load("/gone")

    assert late.stale is True
    assert late.entries == []
    assert browser.state.path == "/2024-01-02"
    assert names(browser.listing) == ["empty"]


def test_refresh_relists_current_path(browser, device):
    browser.load("/2024-01-01")
    device.tree["2024-01-01"]["new.jpg"] = b"x"

    listing = browser.refresh()

    assert "new.jpg" in names(listing)
    assert browser.state.path == "/2024-01-01"


def test_delete_file_removes_exactly_that_entry(browser, device):
    browser.load("/2024-01-01")

    listing = browser.delete("/2024-01-01/log.txt", False, yes)

    assert names(listing) == ["images", "img_000.jpg"]
    assert ("/delete", {"path": "/2024-01-01/log.txt"}) in device.requests


def test_delete_directory_is_recursive(browser, device):
    browser.load("/")

    listing = browser.delete("/2024-01-01", True, yes)

    assert "2024-01-01" not in names(listing)
    assert device.node("/2024-01-01/images/img_001.jpg") is None
    with pytest.raises(DeviceRequestError):
        browser.load("/2024-01-01/images")


def test_declined_delete_sends_nothing(browser, device):
    browser.load("/")
    before = len(device.requests)

    with pytest.raises(ConfirmationRequired) as exc:
        browser.delete("/2024-01-01", True, lambda prompt: False)

    assert exc.value.prompt == "Delete Directory (Recursive!): /2024-01-01?"
    assert len(device.requests) == before
    assert device.node("/2024-01-01") is not None


def test_delete_prompt_names_target_and_kind():
    assert delete_prompt("/a/b.jpg", False) == "Delete File: /a/b.jpg?"
    assert "Recursive" in delete_prompt("/a", True)


def test_failed_delete_does_not_relist(browser, device):
    browser.load("/2024-01-01")
    device.fail["/delete"] = (500, "SD error")
    before = len(device.requests)

    with pytest.raises(DeleteFailedError) as exc:
        browser.delete("/2024-01-01/log.txt", False, yes)

    assert "Delete failed" in str(exc.value)
    assert device.endpoints()[before:] == ["/delete"]
    assert browser.state.path == "/2024-01-01"


def test_partial_recursive_delete_is_reported(browser, device):
    browser.load("/")
    device.partial_delete = True

    with pytest.raises(PartialDeleteError) as exc:
        browser.delete("/2024-01-01", True, yes)

    assert exc.value.error_code == "DELETE_PARTIAL"
    assert exc.value.removed == 1
    assert exc.value.remaining == 2


def test_root_cannot_be_deleted(browser, device):
    with pytest.raises(ValueError):
        browser.delete("/", True, yes)
    assert device.requests == []
