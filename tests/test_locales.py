from __future__ import annotations

from tagsync.identifiers import build_tag_id
from tagsync.locales import LocaleProjector
from tagsync.models import OutcomeStatus, TaxonomyItem
from tagsync.store import InMemoryTagStore


def _store_with_level() -> InMemoryTagStore:
    store = InMemoryTagStore()
    tag_id = build_tag_id("Levels", "Experienced")
    store.create_tag(tag_id, "Experienced", "levels/x")
    return store


def test_project_locale_sets_title_on_canonical_node() -> None:
    store = _store_with_level()
    tag_id = build_tag_id("Levels", "Experienced")
    item = TaxonomyItem(name="Expérimenté", english_name="Experienced")

    outcome = LocaleProjector(store).project_locale(tag_id, item, "fr")

    assert outcome.status == OutcomeStatus.LOCALIZED
    node = store.resolve(tag_id)
    assert node.title == "Experienced"
    assert node.localized_titles == {"fr": "Expérimenté"}
    assert node.properties == {"title.fr": "Expérimenté"}


def test_project_locale_same_value_is_unchanged() -> None:
    store = _store_with_level()
    tag_id = build_tag_id("Levels", "Experienced")
    item = TaxonomyItem(name="Erfahren", english_name="Experienced")
    projector = LocaleProjector(store)

    projector.project_locale(tag_id, item, "de")
    outcome = projector.project_locale(tag_id, item, "de")

    assert outcome.status == OutcomeStatus.UNCHANGED


def test_project_locale_updates_changed_translation() -> None:
    store = _store_with_level()
    tag_id = build_tag_id("Levels", "Experienced")
    projector = LocaleProjector(store)

    projector.project_locale(tag_id, TaxonomyItem(name="Esperto"), "it")
    outcome = projector.project_locale(tag_id, TaxonomyItem(name="Esperienza"), "it")

    assert outcome.status == OutcomeStatus.LOCALIZED
    assert store.resolve(tag_id).localized_titles["it"] == "Esperienza"


def test_project_locale_drops_translation_without_canonical_node() -> None:
    store = InMemoryTagStore()
    tag_id = build_tag_id("Levels", "Intermediate")

    outcome = LocaleProjector(store).project_locale(
        tag_id, TaxonomyItem(name="Intermédiaire", english_name="Intermediate"), "fr"
    )

    assert outcome.status == OutcomeStatus.SKIPPED
    assert outcome.tag_id == tag_id
    assert store.resolve(tag_id) is None
