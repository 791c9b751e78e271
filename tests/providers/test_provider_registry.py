import contextlib

import pytest

import occultengine.providers as providers_module
from occultengine.providers.kinematic import KinematicProvider


@contextlib.contextmanager
def isolated_registry():
    providers = providers_module
    registry_snapshot = providers._REGISTRY.copy()
    metadata_snapshot = providers._METADATA_REGISTRY.copy()
    name_snapshot = providers._NAME_TO_PROVIDER_ID.copy()
    try:
        yield providers
    finally:
        providers._REGISTRY.clear()
        providers._REGISTRY.update(registry_snapshot)
        providers._METADATA_REGISTRY.clear()
        providers._METADATA_REGISTRY.update(metadata_snapshot)
        providers._NAME_TO_PROVIDER_ID.clear()
        providers._NAME_TO_PROVIDER_ID.update(name_snapshot)


def test_builtin_kinematic_provider_is_registered():
    assert "kinematic" in providers_module.list_providers()
    assert isinstance(providers_module.get_provider("mock"), KinematicProvider)
    meta = providers_module.get_provider_metadata("mock")
    assert meta.provider_id == "kinematic"
    assert meta.supports_light_time is True
    assert "kinematic" in providers_module.list_provider_metadata()


def test_register_provider_with_metadata_and_aliases():
    with isolated_registry() as providers:
        metadata = providers.ProviderMetadata(
            provider_id="stub_ephemeris",
            version="1.0.0",
            supported_bodies=("SUN", "MOON"),
            supported_frames=("J2000",),
            supports_light_time=False,
            description="Test stub provider",
            module=__name__,
        )
        providers.register_provider(
            "stub",
            lambda **options: KinematicProvider(**options),
            metadata=metadata,
            aliases=("stub_alias",),
        )

        assert "stub" in providers.list_providers()
        assert isinstance(providers.get_provider("stub_alias"), KinematicProvider)
        assert providers.get_provider_metadata("stub_alias") is metadata
        assert providers.get_provider_metadata("stub").as_dict()["supported_bodies"] == ["SUN", "MOON"]


def test_register_provider_rejects_duplicates():
    with isolated_registry() as providers:
        providers.register_provider("dup", KinematicProvider)
        with pytest.raises(ValueError):
            providers.register_provider("dup", KinematicProvider)
        providers.register_provider("dup", KinematicProvider, overwrite=True)


def test_metadata_from_mapping_and_invalid_metadata():
    with isolated_registry() as providers:
        providers.register_provider(
            "mapped",
            KinematicProvider,
            metadata={
                "provider_id": "mapped",
                "version": None,
                "supported_bodies": (),
                "supported_frames": (),
                "supports_light_time": True,
            },
        )
        assert providers.get_provider_metadata("mapped").supports_light_time is True
        with pytest.raises(TypeError):
            providers.register_provider("broken", KinematicProvider, metadata=42)


def test_unknown_provider_and_metadata():
    with pytest.raises(KeyError):
        providers_module.get_provider("does-not-exist")
    with pytest.raises(KeyError):
        providers_module.get_provider_metadata("does-not-exist")


def test_not_found_errors_are_lookup_errors():
    error = providers_module.FrameNotFoundError("IAU_X", provider_id="p")
    assert isinstance(error, LookupError)
    assert isinstance(error, providers_module.ProviderError)
    assert error.error_code == "FRAME_NOT_FOUND"
    assert error.context == {"name": "IAU_X"}
