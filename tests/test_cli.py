import json
import logging

import pytest

from config.logging_config import NAMESPACES
from relief.cli import build_parser, main
from relief.stl import read_binary_stl

SMALL = {
    "num_attractors": 120,
    "kill_distance": 3.0,
    "influence_distance": 10.0,
    "segment_length": 2.0,
    "width": 40,
    "height": 30,
    "num_roots": 2,
    "max_iterations": 60,
    "blur_radius": 1,
}


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    for name in NAMESPACES:
        logging.getLogger(name).handlers.clear()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'pipeline.json'
    path.write_text(json.dumps(SMALL))
    return path


def _run(tmp_path, config_file, *extra):
    return main(['--config', str(config_file), '--seed', '4', '--output', str(tmp_path / 'out'),
                 '--name', 'panel', *extra])


def test_full_run_writes_outputs(tmp_path, config_file, capsys):
    assert _run(tmp_path, config_file) == 0

    out = tmp_path / 'out'
    stl = read_binary_stl(out / 'panel.stl')
    # 40x30 field: surface plus wall triangles
    assert stl.triangle_count == 4 * 39 * 29 + 4 * 39 + 4 * 29
    assert (out / 'panel_depth.png').exists()
    assert (out / 'panel_branches.json').exists()
    assert "Growth relief complete" in capsys.readouterr().out


def test_rebuild_from_branches(tmp_path, config_file):
    assert _run(tmp_path, config_file) == 0
    branches = tmp_path / 'out' / 'panel_branches.json'
    first = (tmp_path / 'out' / 'panel.stl').read_bytes()

    assert _run(tmp_path, config_file, '--branches', str(branches)) == 0
    assert (tmp_path / 'out' / 'panel.stl').read_bytes() == first


def test_plots_and_saved_config(tmp_path, config_file):
    saved = tmp_path / 'effective.json'
    assert _run(tmp_path, config_file, '--plot', '--profile', '--save-config', str(saved)) == 0
    assert (tmp_path / 'out' / 'panel_growth.png').exists()
    assert (tmp_path / 'out' / 'panel_stats.png').exists()

    data = json.loads(saved.read_text())
    assert data['random_seed'] == 4
    assert data['width'] == 40


def test_bad_branches_file_exits_with_error(tmp_path, config_file):
    bad = tmp_path / 'bad.json'
    bad.write_text(json.dumps({"source_width": 5, "source_height": 5,
                               "branches": [{"position": [1, 1], "parent": 2}]}))
    assert _run(tmp_path, config_file, '--branches', str(bad)) == 1
    assert not (tmp_path / 'out' / 'panel.stl').exists()


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.config == 'config/pipeline.json'
    assert not args.plot and not args.verbose
    assert args.seed is None
