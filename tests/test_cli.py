import numpy as np

from cli.manipulate import main
from services.raster_service import RasterService
from tests.conftest import solid


def test_single_file(tmp_path, gradient_raster):
    rasters = RasterService()
    src = rasters.save(gradient_raster, tmp_path / "in.png")
    out = tmp_path / "out.png"

    assert main([str(src), str(out), "-s", "invert", "-s", "rotate"]) == 0

    result = rasters.load(out)
    assert np.array_equal(result.pixels, np.rot90(255 - gradient_raster.pixels, k=-1))


def test_filter_with_overlay_flags(tmp_path):
    rasters = RasterService()
    src = rasters.save(solid(1, 1, (100, 150, 200)), tmp_path / "in.png")
    halo = rasters.save(solid(2, 2, (50, 50, 50)), tmp_path / "halo.png")
    grain = rasters.save(solid(2, 2, (10, 10, 10)), tmp_path / "grain.png")
    out = tmp_path / "out.png"

    code = main([str(src), str(out), "-s", "filter", "--halo", str(halo), "--grain", str(grain)])

    assert code == 0
    assert rasters.load(out).pixels[0, 0].tolist() == [90, 109, 98]


def test_folder_run(tmp_path, gradient_raster):
    rasters = RasterService()
    rasters.save(gradient_raster, tmp_path / "in" / "a.png")
    assert main([str(tmp_path / "in"), str(tmp_path / "out"), "-s", "grayscale"]) == 0
    assert (tmp_path / "out" / "a.png").exists()


def test_errors_return_nonzero(tmp_path, gradient_raster):
    src = RasterService().save(gradient_raster, tmp_path / "in.png")
    out = tmp_path / "out.png"
    assert main([str(src), str(out), "-s", "blur"]) == 1
    assert main([str(src), str(out), "-s", "filter"]) == 1
    assert main([str(tmp_path / "missing.png"), str(out), "-s", "invert"]) == 1
    assert not out.exists()


def test_folder_run_honours_format(tmp_path, gradient_raster):
    RasterService().save(gradient_raster, tmp_path / "in" / "a.png")
    assert main([str(tmp_path / "in"), str(tmp_path / "out"), "-s", "invert", "--format", "bmp"]) == 0
    out = tmp_path / "out" / "a.bmp"
    assert out.read_bytes()[:2] == b"BM"
    assert not (tmp_path / "out" / "a.png").exists()
