"""
Service Handlers for the Files Domain.
"""

from kilocam.api.schemas.files import DownloadJobResponse, DownloadJobSchema, DownloadJobsResponse, EntrySchema, ListingResponse
from kilocam.core.browser import DirectoryBrowser, Listing
from kilocam.core.downloads import BulkDownloader, DownloadQueue
from kilocam.core.formatting import size_label


def listing_response(browser: DirectoryBrowser, listing: Listing) -> ListingResponse:
    # A stale listing is only reported; the rows shown stay those of the current directory
    shown = browser.listing if listing.stale else listing
    state = browser.state
    return ListingResponse(
        path=state.path,
        can_go_up=state.can_go_up,
        stale=listing.stale,
        entries=[
            EntrySchema(
                name=e.name,
                is_dir=e.is_dir,
                size=e.size,
                size_label=size_label(e),
                path=shown.full_path(e),
            )
            for e in shown.entries
        ],
    )


def current_listing_handler(browser: DirectoryBrowser) -> ListingResponse:
    return listing_response(browser, browser.refresh())


def navigate_handler(browser: DirectoryBrowser, path: str) -> ListingResponse:
    return listing_response(browser, browser.load(path))


def open_handler(browser: DirectoryBrowser, name: str) -> ListingResponse:
    return listing_response(browser, browser.open(name))


def up_handler(browser: DirectoryBrowser) -> ListingResponse:
    return listing_response(browser, browser.up())


def delete_handler(browser: DirectoryBrowser, path: str, is_dir: bool, confirmed: bool) -> ListingResponse:
    return listing_response(browser, browser.delete(path, is_dir, lambda prompt: confirmed))


def job_schema(queue: DownloadQueue) -> DownloadJobSchema:
    return DownloadJobSchema(**queue.to_dict())


def download_all_handler(downloader: BulkDownloader, path: str, confirmed: bool) -> DownloadJobResponse:
    queue = downloader.download_all(path, lambda prompt: confirmed)
    return DownloadJobResponse(
        job=job_schema(queue),
        destination=str(downloader.local_path(queue.source_dir)),
        message=f"Downloading {len(queue.paths)} file(s)",
    )


def discard_downloads_handler(downloader: BulkDownloader) -> DownloadJobsResponse:
    jobs = downloader.active
    downloader.discard_all()
    return DownloadJobsResponse(jobs=[job_schema(q) for q in jobs])
