"""
Service Handlers for the Device Domain.

Handlers raise core exceptions; translating them into HTTP answers is left
to the routes.
"""

from typing import Any, Dict, Optional

from kilocam.api.schemas.device import DeviceStatusResponse, DeviceStatusSchema, MessageResponse, TimeSyncBody
from kilocam.core.actions import DeviceActionController, CapturedPhoto
from kilocam.core.device import ControlAction, DeviceStatus, TimeSyncRequest
from kilocam.core.formatting import status_summary
from kilocam.core.sync import SettingsSynchronizer, StatusPoller, TimeSynchronizer, local_time_sync


def status_schema(status: Optional[DeviceStatus]) -> Optional[DeviceStatusSchema]:
    if status is None:
        return None
    return DeviceStatusSchema(
        name=status.name,
        storage=status.storage_summary,
        time=status.current_time,
        interval=status.interval_seconds,
        light_pwm=status.light_pwm,
        light_dur=status.light_warmup_ms,
        summary=status_summary(status),
    )


def get_status_handler(poller: StatusPoller) -> DeviceStatusResponse:
    """Fetch a fresh status snapshot."""
    return DeviceStatusResponse(device=status_schema(poller.refresh()))


def save_settings_handler(sync: SettingsSynchronizer, data: Dict[str, Any]) -> MessageResponse:
    return MessageResponse(message=sync.save_from_form(data))


def sync_time_handler(sync: TimeSynchronizer, data: Optional[Dict[str, Any]]) -> MessageResponse:
    body = TimeSyncBody.model_validate(data or {})
    if body.epoch is not None and body.tz_offset is not None:
        request = TimeSyncRequest(epoch=body.epoch, tz_offset=body.tz_offset)
    else:
        request = local_time_sync()
    return MessageResponse(message=sync.sync(request))


def control_handler(actions: DeviceActionController, action: str, confirmed: bool) -> MessageResponse:
    """Dispatch a control command; ``confirmed`` answers the confirmation prompt."""
    try:
        action = ControlAction(action)
    except ValueError:
        raise ValueError(f"Unknown action: {action}") from None

    if action is ControlAction.START:
        text = actions.start_collection(lambda prompt: confirmed)
    elif action is ControlAction.SHUTDOWN:
        text = actions.shutdown(lambda prompt: confirmed)
    else:
        text = actions.toggle_light()
    return MessageResponse(message=text)


def capture_handler(actions: DeviceActionController) -> CapturedPhoto:
    return actions.take_photo()
