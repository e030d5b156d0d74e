import json
import logging
from pathlib import Path

from config import PipelineConfig, load_config, save_config
from relief import DepthMapConfig, MeshConfig
from sca import SCAConfig


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / 'nope.json'))
    assert config == PipelineConfig()
    assert config.num_attractors == 5000
    assert config.blur_radius == 2
    assert config.panel_thickness == 50.0
    assert config.relief_height == 20.0


def test_save_load_round_trip(tmp_path):
    path = tmp_path / 'pipeline.json'
    config = PipelineConfig(width=120, height=80, root_mode='circle', invert=True, random_seed=9)
    save_config(config, str(path))
    assert load_config(str(path)) == config


def test_unknown_keys_are_ignored(tmp_path, caplog):
    path = tmp_path / 'pipeline.json'
    path.write_text(json.dumps({"width": 64, "colour": "red"}))
    with caplog.at_level(logging.WARNING):
        config = load_config(str(path))
    assert config.width == 64
    assert "colour" in caplog.text


def test_derived_paths():
    config = PipelineConfig(output_base='out', name='panel')
    assert config.stl_path == Path('out/panel.stl')
    assert config.png_path == Path('out/panel_depth.png')
    assert config.branches_path == Path('out/panel_branches.json')
    assert config.growth_plot_path == Path('out/panel_growth.png')


def test_stage_configs_from_pipeline():
    pipeline = PipelineConfig(kill_distance=2.0, grid_cells_x=12, cell_size=40.0,
                              sigma_range=0.2, relief_height=7.0, random_seed=3)
    sca_config = SCAConfig.from_pipeline(pipeline)
    assert sca_config.kill_distance == 2.0
    assert sca_config.grid_cells_x == 12
    assert sca_config.random_seed == 3

    depth = DepthMapConfig.from_pipeline(pipeline)
    assert depth.cell_size == 40.0
    assert depth.sigma_range == 0.2

    mesh = MeshConfig.from_pipeline(pipeline)
    assert mesh.relief_height == 7.0
    assert mesh.panel_thickness == 50.0


def test_sca_config_rng_is_seeded():
    a = SCAConfig(random_seed=11).rng().random(3)
    b = SCAConfig(random_seed=11).rng().random(3)
    assert list(a) == list(b)


def test_setup_logging_to_file(tmp_path):
    from config import setup_logging
    from config.logging_config import NAMESPACES

    log_file = tmp_path / 'run.log'
    setup_logging(logging.DEBUG, str(log_file))
    try:
        logging.getLogger('sca.engine').info("hello from growth")
        logging.getLogger('relief.mesh').debug("hello from mesh")
    finally:
        handlers = {h for name in NAMESPACES for h in logging.getLogger(name).handlers}
        for name in NAMESPACES:
            logging.getLogger(name).handlers.clear()
        for handler in handlers:
            handler.close()

    text = log_file.read_text()
    assert "sca.engine - INFO - hello from growth" in text
    assert "relief.mesh - DEBUG - hello from mesh" in text


def test_setup_logging_twice_keeps_one_handler():
    from config import setup_logging
    from config.logging_config import NAMESPACES

    root_handlers = list(logging.getLogger().handlers)
    setup_logging(logging.INFO)
    setup_logging(logging.DEBUG)
    try:
        for name in NAMESPACES:
            logger = logging.getLogger(name)
            assert len(logger.handlers) == 1
            assert logger.level == logging.DEBUG
        assert logging.getLogger().handlers == root_handlers
    finally:
        for name in NAMESPACES:
            logging.getLogger(name).handlers.clear()
