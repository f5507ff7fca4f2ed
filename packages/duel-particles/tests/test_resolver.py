"""Tests for ParticlePlanResolver."""
import pytest

from duel_particles import (
    THEMES,
    ParticleBounds,
    ParticlePlan,
    ParticlePlanResolver,
    ParticleSpec,
    texture_key,
)


class _RecordingFactory:
    """Counts texture generation calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[int, ...]]] = []

    def __call__(self, key: str, colors: tuple[int, ...]) -> None:
        self.calls.append((key, colors))


class TestNoParticles:
    """Requests without particles resolve to None."""

    def test_none_spec(self):
        """A descriptor without particles yields no plan."""
        assert ParticlePlanResolver().resolve(None) is None

    def test_unknown_theme(self):
        """Unknown theme names yield no plan and generate nothing."""
        factory = _RecordingFactory()
        resolver = ParticlePlanResolver(texture_factory=factory)
        assert resolver.resolve(ParticleSpec(theme="glitter")) is None
        assert factory.calls == []


class TestThemes:
    """Named themes resolve to their presets."""

    @pytest.mark.parametrize("name", sorted(THEMES))
    def test_theme_resolves(self, name):
        """Every built-in theme resolves to a bounded plan."""
        plan = ParticlePlanResolver().resolve(ParticleSpec(theme=name))
        assert isinstance(plan, ParticlePlan)
        assert 2 <= len(plan.colors) <= 4
        assert plan.texture_key == texture_key(THEMES[name].colors)

    def test_theme_name_case_insensitive(self):
        """Theme lookup ignores case and surrounding spaces."""
        plan = ParticlePlanResolver().resolve(ParticleSpec(theme=" Fire "))
        assert plan is not None
        assert plan.colors == THEMES["fire"].colors

    def test_explicit_fields_override_theme(self):
        """Explicit parameters take precedence over the theme preset."""
        plan = ParticlePlanResolver().resolve(ParticleSpec(theme="ice", quantity=5))
        assert plan is not None
        assert plan.quantity == 5
        assert plan.gravity_y == THEMES["ice"].gravity_y


class TestTextureCache:
    """Texture generation is content-addressed and write-once."""

    def test_fire_requested_twice_generates_once(self):
        """Second request for the same theme reuses the cached texture key."""
        factory = _RecordingFactory()
        resolver = ParticlePlanResolver(texture_factory=factory)
        first = resolver.resolve(ParticleSpec(theme="fire"))
        second = resolver.resolve(ParticleSpec(theme="fire"))
        assert first is not None and second is not None
        assert first.texture_key == second.texture_key
        assert len(factory.calls) == 1
        assert resolver.generated_keys == frozenset({first.texture_key})

    def test_color_order_does_not_matter(self):
        """Palettes differing only in order share one texture."""
        factory = _RecordingFactory()
        resolver = ParticlePlanResolver(texture_factory=factory)
        resolver.resolve(ParticleSpec(colors=(0xFF0000, 0x00FF00)))
        resolver.resolve(ParticleSpec(colors=(0x00FF00, 0xFF0000)))
        assert len(factory.calls) == 1

    def test_distinct_palettes_generate_separately(self):
        """Each new palette triggers one generation."""
        factory = _RecordingFactory()
        resolver = ParticlePlanResolver(texture_factory=factory)
        resolver.resolve(ParticleSpec(theme="fire"))
        resolver.resolve(ParticleSpec(theme="ice"))
        assert len(factory.calls) == 2

    def test_resolvers_do_not_share_cache(self):
        """Caches are per resolver instance."""
        a_calls = _RecordingFactory()
        b_calls = _RecordingFactory()
        ParticlePlanResolver(texture_factory=a_calls).resolve(ParticleSpec(theme="fire"))
        ParticlePlanResolver(texture_factory=b_calls).resolve(ParticleSpec(theme="fire"))
        assert len(a_calls.calls) == 1
        assert len(b_calls.calls) == 1

    def test_factory_attached_later(self):
        """Textures recorded without a factory are not regenerated later."""
        resolver = ParticlePlanResolver()
        resolver.resolve(ParticleSpec(theme="smoke"))
        factory = _RecordingFactory()
        resolver.set_texture_factory(factory)
        resolver.resolve(ParticleSpec(theme="smoke"))
        assert factory.calls == []


class TestClamping:
    """Pathological parameters are clamped to safe bounds."""

    def test_zero_lifespan_and_frequency_are_raised(self):
        """Zero lifespan and zero frequency are lifted to the floors."""
        spec = ParticleSpec(colors=(0x112233, 0x445566), lifespan_ms=0, frequency_ms=0)
        plan = ParticlePlanResolver().resolve(spec)
        assert plan is not None
        assert plan.lifespan_ms == 200
        assert plan.frequency_ms == 15

    def test_quantity_and_speed_capped(self):
        """Huge quantity and speed values are capped."""
        spec = ParticleSpec(colors=(0x112233, 0x445566), quantity=1000, speed=(900, 5000))
        plan = ParticlePlanResolver().resolve(spec)
        assert plan is not None
        assert plan.quantity == 5
        assert plan.speed == (200.0, 200.0)

    def test_reversed_range_is_swapped(self):
        """A (min, max) pair given backwards is normalized."""
        spec = ParticleSpec(colors=(0x112233, 0x445566), angle=(300, 10))
        plan = ParticlePlanResolver().resolve(spec)
        assert plan is not None
        assert plan.angle == (10.0, 300.0)

    def test_colors_truncated_and_padded(self):
        """More than four colors are truncated; a single color is duplicated."""
        resolver = ParticlePlanResolver()
        many = resolver.resolve(ParticleSpec(colors=(1, 2, 3, 4, 5, 6)))
        one = resolver.resolve(ParticleSpec(colors=(0xABCDEF,)))
        assert many is not None and one is not None
        assert many.colors == (1, 2, 3, 4)
        assert one.colors == (0xABCDEF, 0xABCDEF)

    def test_resolve_is_idempotent(self):
        """Two resolutions of the same spec produce equal plans."""
        spec = ParticleSpec(colors=(0xFF0000, 0xFF6600), speed=(60, 120), quantity=3)
        resolver = ParticlePlanResolver()
        assert resolver.resolve(spec) == resolver.resolve(spec)

    def test_custom_bounds(self):
        """Resolver honours custom bounds."""
        bounds = ParticleBounds(quantity=(1, 2))
        plan = ParticlePlanResolver(bounds=bounds).resolve(ParticleSpec(theme="energy"))
        assert plan is not None
        assert plan.quantity == 2

    def test_invalid_bounds_raise(self):
        """Bounds with a zero frequency floor are rejected."""
        with pytest.raises(ValueError):
            ParticleBounds(frequency_ms=(0, 100))


class TestTextureKey:
    """texture_key is deterministic."""

    def test_key_format(self):
        """Keys are prefixed and short."""
        key = texture_key([0xFF0000])
        assert key.startswith("particle-")
        assert len(key) == len("particle-") + 12

    def test_duplicates_ignored(self):
        """Duplicate colors do not change the key."""
        assert texture_key([1, 1, 2]) == texture_key([2, 1])
