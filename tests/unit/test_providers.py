"""Tests for timemachine.core.providers — descriptors and registry."""

from __future__ import annotations

import dataclasses

import pytest

from timemachine.core.providers import (
    DEFAULT_PROVIDERS,
    ProviderDescriptor,
    ProviderRegistry,
    default_registry,
)


def _present(*types: str):
    """Credential presence check returning True for ``types``."""
    return lambda credential_type: credential_type in types


class TestProviderDescriptor:
    """Descriptors are immutable and validated."""

    def test_frozen(self):
        descriptor = DEFAULT_PROVIDERS[0]
        with pytest.raises(dataclasses.FrozenInstanceError):
            descriptor.id = "other"

    def test_candidates_converted_to_tuple(self):
        descriptor = ProviderDescriptor(
            id="x", display_name="X", adapter="direct-url", model_candidates=["a", "b"]
        )
        assert descriptor.model_candidates == ("a", "b")

    def test_empty_candidates_rejected(self):
        with pytest.raises(ValueError, match="at least one model candidate"):
            ProviderDescriptor(id="x", display_name="X", adapter="direct-url", model_candidates=())

    def test_auto_is_reserved(self):
        with pytest.raises(ValueError):
            ProviderDescriptor(id="auto", display_name="A", adapter="direct-url", model_candidates=("m",))

    def test_to_dict(self):
        data = default_registry().get("nanobanana").to_dict()
        assert data["id"] == "nanobanana"
        assert data["credential_type"] == "gemini"
        assert data["model_candidates"] == ["gemini-2.5-flash-image", "gemini-2.5-flash-image-preview"]


class TestDefaultRegistry:
    """The built-in table matches the documented providers."""

    def test_declaration_order(self):
        assert default_registry().ids() == ["nanobanana", "gemini3", "pollinations", "openai"]

    def test_primary_escalation_order(self):
        assert default_registry().get("nanobanana").model_candidates == (
            "gemini-2.5-flash-image",
            "gemini-2.5-flash-image-preview",
        )

    def test_premium_single_model(self):
        descriptor = default_registry().get("gemini3")
        assert descriptor.model_candidates == ("gemini-3-pro-image-preview",)
        assert descriptor.credential_type == "gemini"

    def test_backup_needs_no_credential(self):
        descriptor = default_registry().get("pollinations")
        assert descriptor.credential_type is None
        assert descriptor.requires_credential is False
        assert descriptor.adapter == "direct-url"

    def test_alternative_vendor(self):
        descriptor = default_registry().get("openai")
        assert descriptor.credential_type == "openai"
        assert descriptor.model_candidates == ("dall-e-3",)
        assert descriptor.adapter == "image-api"

    def test_unknown_provider(self):
        registry = default_registry()
        assert registry.get("midjourney") is None
        assert "midjourney" not in registry
        assert "openai" in registry


class TestAutoSelection:
    """``auto`` depends only on shared credential presence."""

    def test_with_shared_credential(self):
        assert default_registry().select_auto_provider(_present("gemini")) == "nanobanana"

    def test_without_shared_credential(self):
        assert default_registry().select_auto_provider(_present()) == "pollinations"

    def test_vendor_credential_alone_does_not_change_choice(self):
        assert default_registry().select_auto_provider(_present("openai")) == "pollinations"

    def test_selection_is_stable(self):
        registry = default_registry()
        choices = {registry.select_auto_provider(_present("gemini")) for _ in range(20)}
        assert choices == {"nanobanana"}


class TestListAvailable:
    """Listing filters by credential presence and always keeps the backup."""

    def test_no_credentials(self):
        ids = [p.id for p in default_registry().list_available(_present())]
        assert ids == ["pollinations"]

    def test_shared_credential(self):
        ids = [p.id for p in default_registry().list_available(_present("gemini"))]
        assert ids == ["nanobanana", "gemini3", "pollinations"]

    def test_all_credentials(self):
        ids = [p.id for p in default_registry().list_available(_present("gemini", "openai"))]
        assert ids == ["nanobanana", "gemini3", "pollinations", "openai"]

    def test_vendor_only_when_credential_present(self):
        ids = [p.id for p in default_registry().list_available(_present("openai"))]
        assert ids == ["pollinations", "openai"]


class TestRegistryValidation:
    """Custom registries are checked at construction."""

    def _backup(self, provider_id: str = "free") -> ProviderDescriptor:
        return ProviderDescriptor(
            id=provider_id, display_name="Free", adapter="direct-url", model_candidates=("m",)
        )

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="registered twice"):
            ProviderRegistry([self._backup(), self._backup()], primary_id="free", backup_id="free")

    def test_unknown_backup_rejected(self):
        with pytest.raises(ValueError, match="Unknown backup"):
            ProviderRegistry([self._backup()], primary_id="free", backup_id="missing")

    def test_backup_requiring_credential_rejected(self):
        gated = ProviderDescriptor(
            id="gated",
            display_name="Gated",
            adapter="multimodal",
            credential_type="gemini",
            model_candidates=("m",),
        )
        with pytest.raises(ValueError, match="must not require a credential"):
            ProviderRegistry([gated], primary_id="gated", backup_id="gated")

    def test_credential_free_primary_always_chosen(self):
        registry = ProviderRegistry([self._backup()], primary_id="free", backup_id="free")
        assert registry.select_auto_provider(_present()) == "free"
        assert len(registry) == 1
