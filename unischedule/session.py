"""
Application state.

One AppState object is created at start-up and passed to every front-end
function (CLI command, interactive flow). It replaces ambient globals:

- start():    load theme / skin, the cached cloud session, then the schedule
              of the matching scope (signed out, or the signed-in user)
- sign_out(): teardown. Session, profile, dirty flag and banner are reset,
              the generation counter moves on (so late cloud answers are
              ignored) and the store switches back to the signed-out scope.

Cloud sync is manual: mutations mark the state dirty, save_to_cloud() sends
the full document. Concurrent devices simply overwrite each other.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from unischedule.cloud import CloudClient, CloudSession, ResetPinResult
from unischedule.errors import AuthError, CloudError, UniScheduleError
from unischedule.model import SKINS, THEMES, Profile
from unischedule.normalize import normalize_courses, normalize_entries, normalize_slots, prune_orphans
from unischedule.restore import Backup
from unischedule.schedule import ScheduleStore
from unischedule.storage import (
    CLOUD_SESSION_KEY,
    LocalStorage,
    has_scoped_cache,
    load_skin,
    load_theme,
    save_skin,
    save_theme,
)

logger = logging.getLogger(__name__)


@dataclass
class AppState:
    storage: LocalStorage
    store: ScheduleStore
    client: CloudClient
    theme: str = "dark"
    skin: str = "default"
    first_run: bool = False
    profile: Optional[Profile] = None
    dirty: bool = False
    last_saved_at: Optional[str] = None
    banner: str = ""
    generation: int = 0
    _hydrating: bool = field(default=False, repr=False)

    # -- lifecycle ----------------------------------------------------------

    @classmethod
    def start(cls, storage: LocalStorage, client: Optional[CloudClient] = None) -> "AppState":
        client = client if client is not None else CloudClient(None)
        if client.enabled:
            client.session = CloudSession.from_dict(storage.get_json(CLOUD_SESSION_KEY))

        user_id = client.session.user_id if client.session else None
        store, first_run = ScheduleStore.load(storage, user_id)
        state = cls(
            storage=storage,
            store=store,
            client=client,
            theme=load_theme(storage),
            skin=load_skin(storage),
            first_run=first_run,
        )
        store.on_change = state._mark_dirty
        return state

    @property
    def user_id(self) -> Optional[str]:
        return self.client.session.user_id if self.client.session else None

    @property
    def signed_in(self) -> bool:
        return self.client.session is not None

    @property
    def is_master(self) -> bool:
        return bool(self.profile and self.profile.is_master)

    def _mark_dirty(self) -> None:
        if self.signed_in and not self._hydrating:
            self.dirty = True

    # -- preferences --------------------------------------------------------

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self.theme = theme
        save_theme(self.storage, theme)
        self._mark_dirty()

    def toggle_theme(self) -> str:
        self.set_theme("light" if self.theme == "dark" else "dark")
        return self.theme

    def set_skin(self, skin: str) -> None:
        if skin not in SKINS:
            raise ValueError(f"Unknown export skin: {skin}")
        self.skin = skin
        save_skin(self.storage, skin)
        self._mark_dirty()

    # -- restore ------------------------------------------------------------

    def restore_backup(self, backup: Backup) -> None:
        """
        Replace the schedule with a (confirmed) backup and adopt its theme / skin.
        """
        if backup.theme:
            self.set_theme(backup.theme)
        if backup.skin:
            self.set_skin(backup.skin)
        self.store.replace_all(backup.slots, backup.courses, backup.entries)
        self.first_run = False

    # -- cloud --------------------------------------------------------------

    def _remember_session(self) -> None:
        if self.client.session is None:
            self.storage.remove_item(CLOUD_SESSION_KEY)
        else:
            self.storage.set_json(CLOUD_SESSION_KEY, self.client.session.to_dict())

    def sign_in(self, identity: str, pin: str, signup: bool = False) -> None:
        """
        Authenticate, switch to the user's scope and hydrate from the cloud.
        """
        self.banner = "Creating user…" if signup else "Signing in…"
        try:
            if signup:
                self.client.sign_up(identity, pin)
            else:
                self.client.sign_in(identity, pin)
        except UniScheduleError:
            self.banner = ""
            raise
        self._remember_session()
        self.generation += 1
        self.first_run = self.store.switch_scope(self.user_id)
        self.load_from_cloud()

    def sign_out(self) -> None:
        self.client.sign_out()
        self._remember_session()
        self.profile = None
        self.dirty = False
        self.last_saved_at = None
        self.banner = ""
        self.generation += 1
        self.first_run = self.store.switch_scope(None)

    def apply_payload(self, payload: Any) -> bool:
        """
        Adopt a {slots, courses, entries, theme?, exportSkin?} document.

        Returns False (and changes nothing) when it has no valid slots.
        """
        if not isinstance(payload, dict):
            return False
        slots = normalize_slots(payload.get("slots"))
        if not slots:
            return False
        courses = normalize_courses(payload.get("courses"))
        entries = prune_orphans(normalize_entries(payload.get("entries")), slots, courses)

        self._hydrating = True
        try:
            if payload.get("theme") in THEMES:
                self.set_theme(payload["theme"])
            if payload.get("exportSkin") in SKINS:
                self.set_skin(payload["exportSkin"])
            self.store.replace_all(slots, courses, entries)
        finally:
            self._hydrating = False
        self.first_run = False
        return True

    def load_from_cloud(self) -> bool:
        """
        Hydrate the signed-in scope: cloud document first, scoped local
        cache second. Returns True if the cloud document was used.

        Answers that arrive after a sign-out / sign-in (generation changed)
        are dropped. Backend errors leave the local state as it is.
        """
        user_id = self.user_id
        if user_id is None:
            return False
        generation = self.generation
        self.banner = "Loading from cloud…"

        profile = None
        try:
            profile = self.client.get_profile(user_id)
        except CloudError as e:
            logger.warning("Profile lookup failed: %s", e)

        try:
            doc = self.client.load_schedule(user_id)
        except CloudError as e:
            if generation == self.generation:
                self.profile = profile
                self.banner = "Cloud load failed. Working locally."
            logger.warning("Cloud load failed: %s", e)
            return False

        if generation != self.generation:
            logger.info("Discarding stale cloud load for %s", user_id)
            return False
        self._remember_session()
        self.profile = profile

        if doc is not None and doc.data:
            self.apply_payload(doc.data)
            self.last_saved_at = doc.updated_at
            self.dirty = False
            self.banner = "Loaded ✅"
            return True

        if has_scoped_cache(self.storage, user_id):
            self.first_run = self.store.switch_scope(user_id)
        self.last_saved_at = None
        self.dirty = False
        self.banner = "No cloud data yet: import a backup or save."
        return False

    def save_to_cloud(self) -> str:
        """
        Upload the full document (last write wins). Returns updated_at.
        """
        user_id = self.user_id
        if user_id is None:
            raise AuthError("You are not signed in to the cloud.")
        self.banner = "Saving to cloud…"
        try:
            updated_at = self.client.save_schedule(user_id, self.store.payload(self.theme, self.skin))
        except CloudError:
            self.banner = "Save failed ❌"
            raise
        self._remember_session()
        self.last_saved_at = updated_at
        self.dirty = False
        self.banner = "Saved ✅"
        return updated_at

    def refresh_profile(self) -> Optional[Profile]:
        """
        Fetch the signed-in user's profile without touching the schedule.
        """
        user_id = self.user_id
        if user_id is None:
            return None
        self.profile = self.client.get_profile(user_id)
        self._remember_session()
        return self.profile

    def _require_master(self) -> None:
        if not self.is_master:
            raise AuthError("Master account required.")

    def list_profiles(self) -> list[Profile]:
        self._require_master()
        return self.client.list_profiles()

    def reset_pin(self, username: str, new_pin: str) -> ResetPinResult:
        self._require_master()
        return self.client.reset_pin(username, new_pin)
