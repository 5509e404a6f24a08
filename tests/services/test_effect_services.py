"""
Tests for sharpen/blur, adjustment, black and white, vintage and HDR services
"""

import numpy as np
import pytest

from core.enums import ProcessingTier
from core.image.processors import PipelineProcessor, RasterProcessor
from schemas import (
    BlackAndWhiteOptions,
    BrightnessContrastOptions,
    ColorBalanceOptions,
    HdrEffectOptions,
    SharpenBlurOptions,
    VintageEffectOptions,
)
from services.black_and_white_service import BlackAndWhiteService, channel_weights, tone_gains
from services.brightness_contrast_service import BrightnessContrastService
from services.color_balance_service import ColorBalanceService, tone_weights
from services.hdr_effect_service import HdrEffectService
from services.image_tool_service import tonal_offset, vibrance
from services.sharpen_blur_service import SharpenBlurService, radial_weight
from services.vintage_effects_service import VintageEffectsService, corner_glow, scratch_lines
from tests.helpers import decode, encode, make_rgb


@pytest.fixture
def png_64():
    """64x48 PNG bytes"""
    return encode(make_rgb(64, 48))


def flat_png(color, size=16):
    return encode(np.full((size, size, 3), color, dtype=np.uint8))


def pixels(result):
    return decode(result.buffer)[..., :3].astype(int)


def tier_diff(service_cls, buffer, options):
    primary = service_cls().process(buffer, options)
    secondary = service_cls(processors=(RasterProcessor(), RasterProcessor())).process(buffer, options)
    return np.abs(pixels(primary) - pixels(secondary)).max()


class TestSharedAdjustments:
    """Test the shared adjustment helpers"""

    def test_vibrance_spares_saturated_pixels(self):
        """Test vibrance leaves fully saturated colours alone"""
        rgb = np.array([[[255, 0, 0], [140, 120, 110]]], dtype=np.float32)

        boosted = vibrance(RasterProcessor(), rgb, 0.5)

        assert np.allclose(boosted[0, 0], (255, 0, 0))
        assert boosted[0, 1, 0] - boosted[0, 1, 2] > 30

    def test_tonal_offset(self):
        """Test shadows and highlights move away from the pivot independently"""
        rgb = np.array([[[28, 28, 28], [228, 228, 228]]], dtype=np.float32)

        out = tonal_offset(RasterProcessor(), rgb, 0.5, -0.5)

        assert np.allclose(out[0, 0], 78, atol=0.5)
        assert np.allclose(out[0, 1], 178, atol=0.5)


class TestSharpenBlurService:
    """Test SharpenBlurService"""

    def test_no_adjustments(self, png_64):
        """Test default options keep the image"""
        result = SharpenBlurService().process(png_64, SharpenBlurOptions())

        assert result.labels == []
        assert np.array_equal(pixels(result), make_rgb(64, 48))

    def test_sharpen_and_blur_labels(self, png_64):
        """Test sharpening steps run before the blur"""
        options = SharpenBlurOptions(
            sharpenAmount=40,
            edgeEnhancement=20,
            noiseReduction=10,
            blurAmount=30,
            preserveDetails=False,
        )

        result = SharpenBlurService().process(png_64, options)

        assert result.labels == [
            "Sharpen 40",
            "Edge enhancement 20",
            "Noise reduction 10",
            "Gaussian blur 30",
        ]

    def test_unsharp_mask(self, png_64):
        """Test unsharp mask and smart sharpening labels"""
        options = SharpenBlurOptions(sharpenAmount=60, unsharpMask=True, smartSharpen=True)

        result = SharpenBlurService().process(png_64, options)

        assert result.labels == ["Unsharp mask 60", "Smart sharpening"]

    def test_unsharp_threshold_skips_flat_image(self):
        """Test a flat image has no detail above the threshold"""
        options = SharpenBlurOptions(sharpenAmount=100, unsharpMask=True, sharpenThreshold=10)

        result = SharpenBlurService().process(flat_png((90, 90, 90)), options)

        assert np.all(pixels(result) == 90)

    @pytest.mark.parametrize(
        "blur_type,label",
        [
            ("gaussian", "Gaussian blur 50"),
            ("motion", "Motion blur 50 at 45°"),
            ("radial", "Radial blur 50"),
            ("surface", "Surface blur 50"),
        ],
    )
    def test_blur_types(self, png_64, blur_type, label):
        """Test each blur type labels itself and keeps the size"""
        options = SharpenBlurOptions(
            blurAmount=50, blurType=blur_type, motionAngle=45, preserveDetails=False
        )

        result = SharpenBlurService().process(png_64, options)

        assert result.labels == [label]
        assert str(result.processed_dimensions) == "64x48"

    def test_blur_smooths(self, png_64):
        """Test gaussian blur lowers local contrast"""
        options = SharpenBlurOptions(blurAmount=40, preserveDetails=False)

        result = SharpenBlurService().process(png_64, options)

        assert np.abs(np.diff(pixels(result), axis=1)).max() < np.abs(
            np.diff(make_rgb(64, 48).astype(int), axis=1)
        ).max()

    def test_detail_preservation_label(self, png_64):
        """Test detail preservation follows the blur"""
        options = SharpenBlurOptions(blurAmount=20, blurType="surface")

        result = SharpenBlurService().process(png_64, options)

        assert result.labels == ["Surface blur 20", "Detail preservation"]

    def test_radial_weight(self):
        """Test radial weight is zero at the chosen centre"""
        weight = radial_weight(11, 21, 0.0, 50.0)

        assert weight[5, 0] == 0
        assert weight.max() == pytest.approx(1.0)

    def test_tiers_agree(self, png_64):
        """Test sharpening and gaussian blur agree across tiers"""
        options = SharpenBlurOptions(sharpenAmount=30, blurAmount=20, preserveDetails=False)

        assert tier_diff(SharpenBlurService, png_64, options) <= 2


class TestBrightnessContrastService:
    """Test BrightnessContrastService"""

    def test_labels(self, png_64):
        """Test every non-neutral adjustment is labelled in order"""
        options = BrightnessContrastOptions(
            brightness=10,
            contrast=-20,
            exposure=0.5,
            highlights=-30,
            shadows=25,
            gamma=1.2,
            saturation=15,
            vibrance=-10,
            temperature=20,
            tint=-5,
            autoLevels=True,
        )

        result = BrightnessContrastService().process(png_64, options)

        assert result.labels == [
            "Auto levels",
            "Exposure +0.5EV",
            "Brightness +10",
            "Contrast -20",
            "Highlights -30",
            "Shadows +25",
            "Gamma 1.20",
            "Saturation +15",
            "Vibrance -10",
            "Temperature +20",
            "Tint -5",
        ]

    def test_brightness_offset(self):
        """Test brightness adds 2.55 per step"""
        result = BrightnessContrastService().process(
            flat_png((100, 100, 100)), BrightnessContrastOptions(brightness=20)
        )

        assert np.all(pixels(result) == 151)

    def test_exposure_doubles(self):
        """Test one EV doubles the values"""
        result = BrightnessContrastService().process(
            flat_png((60, 80, 100)), BrightnessContrastOptions(exposure=1.0)
        )

        assert tuple(pixels(result)[0, 0]) == (120, 160, 200)

    def test_temperature(self):
        """Test warm temperature raises red and green"""
        result = BrightnessContrastService().process(
            flat_png((100, 100, 100)), BrightnessContrastOptions(temperature=100)
        )

        assert tuple(pixels(result)[0, 0]) == (130, 115, 100)

    def test_auto_contrast_stretches(self, png_64):
        """Test auto contrast widens the luma range"""
        result = BrightnessContrastService().process(png_64, BrightnessContrastOptions(autoContrast=True))

        assert result.labels == ["Auto contrast"]
        assert pixels(result).max() == 255

    def test_auto_color_label(self, png_64):
        """Test gray world correction is labelled after auto contrast"""
        options = BrightnessContrastOptions(autoContrast=True, autoColor=True)

        result = BrightnessContrastService().process(png_64, options)

        assert result.labels == ["Auto contrast", "Auto color"]

    def test_tiers_agree(self, png_64):
        """Test primary and secondary tiers agree"""
        options = BrightnessContrastOptions(brightness=10, contrast=25, saturation=20)

        assert tier_diff(BrightnessContrastService, png_64, options) <= 2


class TestColorBalanceService:
    """Test ColorBalanceService"""

    def test_labels(self, png_64):
        """Test labels for each adjustment"""
        options = ColorBalanceOptions(
            temperature=-20,
            tint=10,
            hue=15,
            saturation=5,
            vibrance=5,
            redBalance=10,
            blueBalance=-10,
            shadowsColor={"r": 0, "g": 0, "b": 20},
            autoWhiteBalance=True,
            autoColorCorrection=True,
        )

        result = ColorBalanceService().process(png_64, options)

        assert result.labels == [
            "Auto white balance",
            "Auto color correction",
            "Temperature -20",
            "Tint +10",
            "Hue +15°",
            "Saturation +5",
            "Vibrance +5",
            "Red +10",
            "Blue -10",
            "Tone color grading",
        ]

    def test_channel_balance(self):
        """Test full channel balance shifts by 50"""
        options = ColorBalanceOptions(redBalance=100, greenBalance=-100)

        result = ColorBalanceService().process(flat_png((100, 100, 100)), options)

        assert tuple(pixels(result)[0, 0]) == (150, 50, 100)

    def test_cool_temperature(self):
        """Test cool temperature raises blue by 40"""
        options = ColorBalanceOptions(temperature=-100)

        result = ColorBalanceService().process(flat_png((100, 100, 100)), options)

        assert tuple(pixels(result)[0, 0]) == (100, 100, 140)

    def test_tone_weights(self):
        """Test tonal weights split each pixel between ranges"""
        luma = np.array([0.0, 127.5, 255.0], dtype=np.float32)

        shadows, midtones, highlights = tone_weights(luma)

        assert shadows[0] == 1.0 and highlights[2] == 1.0
        assert np.allclose(shadows + midtones + highlights, 1.0)
        assert midtones[1] == pytest.approx(0.5)

    def test_highlight_grading_spares_shadows(self):
        """Test a highlight tint leaves black pixels alone"""
        options = ColorBalanceOptions(highlightsColor={"r": 100, "g": 0, "b": 0})

        result = ColorBalanceService().process(flat_png((0, 0, 0)), options)

        assert np.all(pixels(result) == 0)

    def test_rejects_unknown_tone_key(self):
        """Test nested tone shifts forbid unknown keys"""
        with pytest.raises(ValueError):
            ColorBalanceOptions(midtonesColor={"red": 10})

    def test_tiers_agree(self, png_64):
        """Test hue rotation and balance agree across tiers"""
        options = ColorBalanceOptions(hue=30, saturation=10, redBalance=20)

        assert tier_diff(ColorBalanceService, png_64, options) <= 2


class TestBlackAndWhiteService:
    """Test BlackAndWhiteService"""

    @pytest.mark.parametrize(
        "mode,label",
        [
            ("simple", "Simple conversion"),
            ("channel-mix", "Channel mix conversion"),
            ("tonal", "Tonal conversion"),
            ("film", "Film simulation"),
            ("custom", "Custom conversion"),
        ],
    )
    def test_modes_are_gray(self, png_64, mode, label):
        """Test every mode produces equal channels"""
        result = BlackAndWhiteService().process(png_64, BlackAndWhiteOptions(conversionMode=mode))

        assert result.labels == [label]
        assert result.format == "jpg"
        image = decode(
            BlackAndWhiteService()
            .process(png_64, BlackAndWhiteOptions(conversionMode=mode, outputFormat="png"))
            .buffer
        ).astype(int)
        assert np.all(image[..., 0] == image[..., 1])
        assert np.all(image[..., 1] == image[..., 2])

    def test_film_weights(self):
        """Test Tri-X weights favour green"""
        options = BlackAndWhiteOptions(
            conversionMode="film", filmType="tri-x", contrast=0, outputFormat="png"
        )

        result = BlackAndWhiteService().process(flat_png((0, 200, 0)), options)

        assert np.all(pixels(result) == 140)

    def test_channel_weights(self):
        """Test channel weights normalize by absolute sum"""
        assert channel_weights(50, 50, 0) == (0.5, 0.5, 0.0)
        assert channel_weights(200, -100, 100) == (0.5, -0.25, 0.25)
        assert channel_weights(0, 0, 0) == (0.0, 0.0, 0.0)

    def test_toning_keeps_luma(self):
        """Test toning gains preserve the toning colour's luma"""
        gains = tone_gains((112, 66, 20))
        luma = 0.299 * gains[0] + 0.587 * gains[1] + 0.114 * gains[2]

        assert luma == pytest.approx(1.0)
        assert gains[0] > gains[1] > gains[2]

    def test_effects(self, png_64):
        """Test grain, toning and vignette labels"""
        options = BlackAndWhiteOptions(grain=30, toning="sepia", toningIntensity=80, vignette=50)

        result = BlackAndWhiteService().process(png_64, options)

        assert result.labels == ["Simple conversion", "Film grain", "Sepia toning", "Vignette"]

    def test_sepia_is_warm(self):
        """Test sepia toning tints gray towards brown"""
        options = BlackAndWhiteOptions(
            contrast=0, toning="sepia", toningIntensity=100, outputFormat="png"
        )

        result = BlackAndWhiteService().process(flat_png((120, 120, 120)), options)

        r, g, b = pixels(result)[0, 0]
        assert r > g > b

    def test_vignette_darkens_corners(self):
        """Test vignette keeps the centre and darkens corners"""
        options = BlackAndWhiteOptions(contrast=0, vignette=100, outputFormat="png")

        result = BlackAndWhiteService().process(flat_png((200, 200, 200), size=33), options)

        image = pixels(result)
        assert image[16, 16, 0] == 200
        assert image[0, 0, 0] < 60

    def test_tiers_agree(self, png_64):
        """Test conversion agrees across tiers"""
        options = BlackAndWhiteOptions(conversionMode="tonal", shadows=20, outputFormat="png")

        assert tier_diff(BlackAndWhiteService, png_64, options) <= 2


class TestVintageEffectsService:
    """Test VintageEffectsService"""

    @pytest.mark.parametrize(
        "style,label",
        [
            ("classic", "Classic film look"),
            ("sepia", "Sepia tone"),
            ("noir", "Film noir"),
            ("faded", "Faded film"),
            ("technicolor", "Technicolor"),
            ("polaroid", "Polaroid look"),
            ("cinematic", "Cinematic grade"),
            ("retro", "Retro palette"),
            ("custom", "Custom vintage grade"),
        ],
    )
    def test_styles(self, png_64, style, label):
        """Test each style labels itself first"""
        options = VintageEffectOptions(vintageStyle=style, filmGrain=0, vignette=False)

        result = VintageEffectsService().process(png_64, options)

        assert result.labels == [label]
        assert result.format == "jpg"

    def test_defaults(self, png_64):
        """Test default options add grain and a vignette"""
        result = VintageEffectsService().process(png_64, VintageEffectOptions())

        assert result.labels == ["Classic film look", "Film grain", "Vignette"]

    def test_artifacts(self, png_64):
        """Test light leak, scratches and colour controls"""
        options = VintageEffectOptions(
            filmGrain=0,
            vignette=False,
            lightLeak=True,
            lightLeakType="soft",
            scratches=True,
            colorShift=40,
            colorBalance={"red": 10, "green": 0, "blue": -10},
        )

        result = VintageEffectsService().process(png_64, options)

        assert result.labels == [
            "Classic film look",
            "Color balance",
            "Color shift",
            "Soft light leak",
            "Film scratches",
        ]

    def test_light_leak_needs_type(self, png_64):
        """Test a leak with type none is skipped"""
        options = VintageEffectOptions(filmGrain=0, vignette=False, lightLeak=True)

        result = VintageEffectsService().process(png_64, options)

        assert "light leak" not in result.labels_header

    @pytest.mark.parametrize(
        "border,size",
        [("white", (84, 68)), ("black", (84, 68)), ("film", (74, 68)), ("polaroid", (84, 88))],
    )
    def test_borders(self, png_64, border, size):
        """Test border margins per style"""
        options = VintageEffectOptions(border=border, borderWidth=10, filmGrain=0)

        result = VintageEffectsService().process(png_64, options)

        assert (result.processed_dimensions.width, result.processed_dimensions.height) == size
        assert result.labels[-1] == f"{border.capitalize()} border"

    def test_grain_is_repeatable(self, png_64):
        """Test seeded grain gives identical output"""
        options = VintageEffectOptions(outputFormat="png")

        a = VintageEffectsService().process(png_64, options)
        b = VintageEffectsService().process(png_64, options)

        assert a.buffer == b.buffer

    def test_corner_glow(self):
        """Test corner glow peaks at the chosen corner"""
        glow = corner_glow(10, 20, 1, 0.5)

        assert glow[0, 19] == 1.0
        assert glow[9, 0] == 0.0

    def test_scratches_only_brighten(self):
        """Test scratches lighten a few columns"""
        rgb = np.full((30, 120, 3), 100, dtype=np.float32)

        out = scratch_lines(rgb)

        assert np.all(out >= rgb)
        assert (out > rgb).any()

    def test_intensity_blends_style(self):
        """Test intensity one keeps almost all of the original colour"""
        options = VintageEffectOptions(
            vintageStyle="noir",
            intensity=1,
            filmGrain=0,
            vignette=False,
            contrast=0,
            brightness=0,
            saturation=0,
            outputFormat="png",
        )

        result = VintageEffectsService().process(flat_png((200, 40, 40)), options)

        r, g, b = pixels(result)[0, 0]
        assert r > 190 and g < 50


class TestHdrEffectService:
    """Test HdrEffectService"""

    @pytest.mark.parametrize(
        "style,label",
        [
            ("natural", "Natural HDR"),
            ("dramatic", "Dramatic HDR"),
            ("cinematic", "Cinematic HDR"),
            ("surreal", "Surreal HDR"),
            ("vivid", "Vivid HDR"),
            ("moody", "Moody HDR"),
            ("landscape", "Landscape HDR"),
            ("custom", "Custom HDR"),
        ],
    )
    def test_styles(self, png_64, style, label):
        """Test each style runs and is labelled after tone mapping"""
        result = HdrEffectService().process(png_64, HdrEffectOptions(effectType=style))

        assert label in result.labels
        assert result.labels.index("Filmic tone mapping") < result.labels.index(label)
        assert result.format == "jpg"

    def test_default_labels(self, png_64):
        """Test default options"""
        result = HdrEffectService().process(png_64, HdrEffectOptions())

        assert result.labels == [
            "Shadow recovery",
            "Highlight recovery",
            "Filmic tone mapping",
            "Clarity",
            "Natural HDR",
            "Vibrance",
            "Glow",
        ]

    def test_dynamic_range_rating(self, png_64):
        """Test the rating adds range, style, tone mapping and recovery"""
        options = HdrEffectOptions(
            effectType="dramatic",
            toneMapping="aces",
            dynamicRange=50,
            shadowRecovery=40,
            highlightRecovery=60,
            intensity=50,
        )

        result = HdrEffectService().process(png_64, options)

        # 5.0 + 1.2 + 0.8 + 0.5 + 0.5
        assert result.score == 8.0

    def test_rating_capped(self, png_64):
        """Test the rating never exceeds 10"""
        options = HdrEffectOptions(
            effectType="surreal",
            toneMapping="aces",
            dynamicRange=100,
            shadowRecovery=100,
            highlightRecovery=100,
            intensity=100,
        )

        assert HdrEffectService().process(png_64, options).score == 10.0

    def test_color_grading(self, png_64):
        """Test temperature grading only runs when enabled"""
        graded = HdrEffectService().process(png_64, HdrEffectOptions(colorTemperature=30))
        plain = HdrEffectService().process(
            png_64, HdrEffectOptions(colorTemperature=30, colorGrading=False)
        )

        assert "Color grading" in graded.labels
        assert "Color grading" not in plain.labels

    def test_mock_tier(self, png_64, broken_processors):
        """Test the rating is zero on passthrough"""
        result = HdrEffectService(processors=broken_processors).process(png_64, HdrEffectOptions())

        assert result.tier == ProcessingTier.MOCK
        assert result.labels == ["Mock HDR effect applied"]
        assert result.score == 0.0

    def test_primary_tier_used(self, png_64):
        """Test the OpenCV tier handles HDR"""
        service = HdrEffectService(processors=(PipelineProcessor(), RasterProcessor()))

        assert service.process(png_64, HdrEffectOptions()).tier == ProcessingTier.PRIMARY
