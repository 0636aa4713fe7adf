import math

import pytest

from printprep.config import DEFAULT_SIZE_CM
from printprep.model.batch import (
    BatchResize, WorkOrder, build_batch, build_work_order, iter_progress,
)
from printprep.model.geometry import ProcessMode, CropRect
from printprep.model.images import ImageDescriptor
from printprep.model.layout import LayoutConfig, LayoutSnapshot, config_from_snapshot
from printprep.model.linked import LinkedPair, DrivingField
from printprep.model.presets import PresetLibrary


def _image(path, size, pixels=None):
    image = ImageDescriptor.from_probe(path, size)
    return image.with_pixels(*pixels) if pixels else image


@pytest.fixture
def presets():
    return PresetLibrary()


def test_empty_selection_builds_nothing(presets):
    assert build_batch([], {}, lambda img: LayoutConfig(), presets) == []


def test_pad_a4_on_landscape_photo(presets):
    image = _image("/p/land.jpg", "30 x 20 cm", (3000, 2000))
    order = build_work_order(image, LayoutConfig(mode=ProcessMode.PAD, template="A4"), presets)
    assert (order.target_width_cm, order.target_height_cm) == (29.7, 21.0)
    assert order.crop_rect == CropRect.full()


def test_pad_a4_on_portrait_photo(presets):
    image = _image("/p/port.jpg", "20 x 30 cm", (2000, 3000))
    order = build_work_order(image, LayoutConfig(mode=ProcessMode.PAD, template="A4"), presets)
    assert (order.target_width_cm, order.target_height_cm) == (21.0, 29.7)


def test_orientation_uses_physical_size_before_decoding(presets):
    image = _image("/p/port.jpg", "20 x 30 cm")
    order = build_work_order(image, LayoutConfig(mode=ProcessMode.PAD, template="A3"), presets)
    assert (order.target_width_cm, order.target_height_cm) == (29.7, 42.0)


def test_flipped_crop_swaps_matched_orientation(presets):
    image = _image("/p/land.jpg", "30 x 20 cm", (3000, 2000))
    config = LayoutConfig(mode=ProcessMode.CROP, template="A4", crop_flipped=True)
    config.crop_rect = CropRect(20.0, 0.0, 40.0, 100.0)
    order = build_work_order(image, config, presets)
    assert (order.target_width_cm, order.target_height_cm) == (21.0, 29.7)
    assert order.crop_rect == CropRect(20.0, 0.0, 40.0, 100.0)


def test_free_dimension_crop_uses_custom_box(presets):
    image = _image("/p/land.jpg", "30 x 20 cm", (3000, 2000))
    config = LayoutConfig(mode=ProcessMode.CROP, custom=LinkedPair(13.0, 18.0))
    order = build_work_order(image, config, presets)
    assert (order.target_width_cm, order.target_height_cm) == (18.0, 13.0)


def test_border_keeps_photo_size_and_reports_margins(presets):
    image = _image("/p/land.jpg", "30 x 20 cm", (3000, 2000))
    config = LayoutConfig(mode=ProcessMode.BORDER)
    config.border.set("top", 0.5)
    order = build_work_order(image, config, presets)
    assert (order.target_width_cm, order.target_height_cm) == (30.0, 20.0)
    assert order.border_cm == {"top": 0.5, "right": 0.5, "bottom": 0.5, "left": 0.5}


def test_single_image_resize_uses_its_resize_box(presets):
    image = _image("/p/land.jpg", "30 x 20 cm")
    config = LayoutConfig(mode=ProcessMode.RESIZE, resize=LinkedPair(45.0, 30.0))
    orders = build_batch([image], {image.identity: config}, lambda img: LayoutConfig(), presets)
    assert [(o.target_width_cm, o.target_height_cm) for o in orders] == [(45.0, 30.0)]


def test_missing_layouts_are_synthesized_once_and_kept(presets):
    images = [_image("/p/a.jpg", "30 x 20 cm", (3000, 2000)), _image("/p/b.jpg", "20 x 30 cm", (2000, 3000))]
    configs = {}
    calls = []

    def factory(image):
        calls.append(image.identity)
        return config_from_snapshot(LayoutSnapshot(mode=ProcessMode.PAD, template="A4"), image, presets)

    first = build_batch(images, configs, factory, presets)
    second = build_batch(images, configs, factory, presets)
    assert first == second
    assert calls == ["/p/a.jpg", "/p/b.jpg"]
    assert set(configs) == {"/p/a.jpg", "/p/b.jpg"}


def test_output_follows_selection_order(presets):
    images = [_image(f"/p/{name}.jpg", "10 x 10 cm") for name in ("c", "a", "b")]
    orders = build_batch(images, {}, lambda img: LayoutConfig(), presets)
    assert [o.image for o in orders] == ["/p/c.jpg", "/p/a.jpg", "/p/b.jpg"]


def test_batch_resize_follows_each_native_aspect(presets):
    images = [_image("/p/a.jpg", "30 x 20 cm"), _image("/p/b.jpg", "12 x 12 cm")]
    configs = {img.identity: LayoutConfig(mode=ProcessMode.RESIZE) for img in images}
    resize = BatchResize(driving=DrivingField.WIDTH, value=30.0)
    orders = build_batch(images, configs, lambda img: LayoutConfig(), presets, resize)
    assert [(o.target_width_cm, o.target_height_cm) for o in orders] == [(30.0, 20.0), (30.0, 30.0)]


def test_batch_resize_only_touches_resize_layouts(presets):
    images = [_image("/p/a.jpg", "30 x 20 cm"), _image("/p/b.jpg", "30 x 20 cm", (3000, 2000))]
    configs = {
        "/p/a.jpg": LayoutConfig(mode=ProcessMode.RESIZE),
        "/p/b.jpg": LayoutConfig(mode=ProcessMode.PAD, template="A4"),
    }
    resize = BatchResize(driving=DrivingField.HEIGHT, value=10.0)
    orders = build_batch(images, configs, lambda img: LayoutConfig(), presets, resize)
    assert (orders[0].target_width_cm, orders[0].target_height_cm) == (15.0, 10.0)
    assert (orders[1].target_width_cm, orders[1].target_height_cm) == (29.7, 21.0)


@pytest.mark.parametrize("value", [None, 0.0, -3.0])
def test_batch_resize_without_driving_value_is_a_no_op(presets, value):
    images = [_image("/p/a.jpg", "30 x 20 cm"), _image("/p/b.jpg", "12 x 12 cm")]
    configs = {img.identity: LayoutConfig(mode=ProcessMode.RESIZE) for img in images}
    resize = BatchResize(driving=DrivingField.WIDTH, value=value)
    assert build_batch(images, configs, lambda img: LayoutConfig(), presets, resize) == []
    assert resize.value is None


@pytest.mark.parametrize("width, height", [
    (0.0, 10.0), (-5.0, 10.0), (float("nan"), 10.0), (float("inf"), 3.0), (0.001, 0.001),
])
@pytest.mark.parametrize("mode", list(ProcessMode))
def test_garbage_sizes_still_give_positive_targets(presets, width, height, mode):
    image = ImageDescriptor("/p/odd.jpg", width, height)
    config = LayoutConfig(
        mode=mode,
        custom=LinkedPair(width, height),
        resize=LinkedPair(width, height),
        crop_rect=CropRect(150.0, -3.0, 20.0, float("nan")),
    )
    order = build_work_order(image, config, presets)
    assert math.isfinite(order.target_width_cm) and order.target_width_cm > 0
    assert math.isfinite(order.target_height_cm) and order.target_height_cm > 0
    rect = order.crop_rect
    assert 0.0 <= rect.x <= 100.0 and 0.0 <= rect.y <= 100.0
    assert rect.w > 0 and rect.h > 0
    assert rect.x + rect.w <= 100.0 and rect.y + rect.h <= 100.0


def test_degenerate_size_falls_back_to_default(presets):
    image = ImageDescriptor("/p/odd.jpg", 0.0, 0.0)
    order = build_work_order(image, LayoutConfig(mode=ProcessMode.BORDER), presets)
    assert (order.target_width_cm, order.target_height_cm) == DEFAULT_SIZE_CM


def test_target_pixels_at_output_resolution():
    order = WorkOrder("/p/a.jpg", ProcessMode.PAD, 21.0, 29.7)
    assert order.target_pixels() == (2480, 3508)
    assert order.target_pixels(150) == (1240, 1754)


def test_work_order_serializes_plain_values():
    data = WorkOrder("/p/a.jpg", ProcessMode.CROP, 10.0, 15.0).to_dict()
    assert data["mode"] == "crop"
    assert data["crop_rect"] == {"x": 0.0, "y": 0.0, "w": 100.0, "h": 100.0}
    assert data["border_cm"]["left"] == 0.0


def test_progress_is_positional():
    orders = [WorkOrder(f"/p/{n}.jpg", ProcessMode.PAD, 10.0, 10.0) for n in ("a", "b", "c", "d")]
    steps = list(iter_progress(orders))
    assert [order for order, _ in steps] == orders
    assert [p.current for _, p in steps] == [1, 2, 3, 4]
    assert steps[0][1].current_name == "a.jpg"
    assert steps[1][1].percentage == pytest.approx(50.0)
    assert "b.jpg" in steps[1][1].status_message
