"""
Input Loading Tests
===================

Tests for reference data loading, scenario configuration and command-line
parsing.

Tests:
------
TestLoadFiles
  - test_error_missing_folder       : verify a missing data folder raises MissingDataError with remediation
  - test_error_missing_lsk          : verify a folder without naif0012.tls raises MissingDataError
  - test_known_solution_utc_to_et   : verify the scenario epoch converts to the expected ET
  - test_utc_round_trip             : verify UTC -> ET -> UTC returns the same calendar string
  - test_unload_idempotent          : verify unload can be called twice and blocks conversions
  - test_gravity_file_discovery     : verify the .gfc file in the data folder is loaded on request

TestMainMissingData
  - test_missing_folder_exit_status : verify main reports a missing folder on stderr with exit 1
  - test_missing_lsk_exit_status    : verify main reports a missing kernel with exit 1

TestBuildConfig
  - test_defaults                    : verify the default scenario values
  - test_scenario_file_overrides     : verify YAML values override defaults and arguments override YAML
  - test_unknown_key_warning         : verify unknown scenario keys are reported
  - test_error_invalid_values        : verify invalid arguments are rejected
  - test_error_missing_scenario_file : verify a missing scenario file is reported
  - test_timezone_aware_epoch        : verify aware epochs are converted to UTC
  - test_setup_paths_env             : verify the data folder falls back to $DRAG_PROPAGATOR_DATA

TestCommandLine
  - test_defaults          : verify unset options are None
  - test_options           : verify option parsing
  - test_error_bad_choice  : verify invalid choices exit with argparse error

TestTimeHelper
  - test_parse_time          : verify ISO epochs with and without UTC offsets
  - test_error_parse_time    : verify malformed epochs are rejected
  - test_format_time_offset  : verify signed day/hour/minute/second spans

Usage:
------
  python -m pytest src/drag_propagator/validation/test_loader.py -v
"""
import pytest
import numpy as np

from datetime import datetime, timedelta, timezone
from pathlib  import Path

from drag_propagator.input.cli           import parse_command_line_arguments
from drag_propagator.input.configuration import build_config, setup_paths
from drag_propagator.input.loader        import LSK_FILENAME, MissingDataError, load_files
from drag_propagator.main                import main
from drag_propagator.model.constants     import CONVERTER, SCENARIO
from drag_propagator.utility.time_helper import format_time_offset, parse_time


class TestLoadFiles:
  """Tests for load_files and DataContext."""

  def test_error_missing_folder(self, tmp_path):
    """Test that a missing folder raises MissingDataError naming the folder."""
    missing_folderpath = tmp_path / 'missing'

    with pytest.raises(MissingDataError) as exc_info:
      load_files(missing_folderpath)

    assert str(missing_folderpath) in str(exc_info.value)
    assert 'folder' in str(exc_info.value)
    assert LSK_FILENAME in exc_info.value.remediation
    assert str(missing_folderpath) in exc_info.value.remediation
    assert isinstance(exc_info.value, FileNotFoundError)

  def test_error_missing_lsk(self, tmp_path):
    """Test that an existing folder without the leap seconds kernel is rejected."""
    with pytest.raises(MissingDataError) as exc_info:
      load_files(tmp_path)

    assert exc_info.value.filepath == tmp_path / LSK_FILENAME
    assert LSK_FILENAME in str(exc_info.value)

  def test_known_solution_utc_to_et(self, data_context):
    """Test ET of 2017-12-20T23:30:00 UTC (37 leap seconds, TT - TAI = 32.184 s)."""
    epoch = data_context.epoch_from_utc(SCENARIO.EPOCH_UTC)

    # 6562.5 days plus 23.5 hours past J2000, with TT - UTC = 69.184 s
    expected_et = 567084600.0 + 37.0 + 32.184
    assert epoch.et == pytest.approx(expected_et, abs=0.01)
    assert epoch.scale == 'UTC'

  def test_utc_round_trip(self, data_context):
    """Test that a UTC string survives the conversion to ET and back."""
    epoch = data_context.epoch_from_utc('2017-12-20T23:30:00')

    assert data_context.epoch_to_utc(epoch) == '2017-12-20T23:30:00.000'
    assert data_context.epoch_to_utc(epoch.shifted_by(10.5)) == '2017-12-20T23:30:10.500'

    epoch_dt = data_context.epoch_from_utc(datetime(2017, 12, 20, 23, 30, 0))
    assert epoch_dt.et == pytest.approx(epoch.et, abs=1e-6)

  def test_unload_idempotent(self, orbit_data_path):
    """Test that unloading twice is allowed and conversions fail afterwards."""
    with load_files(orbit_data_path) as data_context:
      assert data_context.loaded

    assert not data_context.loaded
    data_context.unload()

    with pytest.raises(RuntimeError):
      data_context.epoch_from_utc(SCENARIO.EPOCH_UTC)

  def test_gravity_file_discovery(self, orbit_data_path):
    """Test that the gravity coefficient file is loaded only when requested."""
    with load_files(orbit_data_path) as data_context:
      assert data_context.gravity_coeffs is None

    with load_files(orbit_data_path, load_gravity=True) as data_context:
      coeffs = data_context.gravity_coeffs
      assert coeffs is not None
      assert coeffs.get(2) == pytest.approx(1.0826e-3, rel=1e-3)


class TestMainMissingData:
  """Tests for the missing reference data path of main."""

  def test_missing_folder_exit_status(self, tmp_path, capsys):
    """Test that main exits with 1 and explains how to fix a missing folder."""
    missing_folderpath = tmp_path / 'missing'

    result = main(data_folderpath=str(missing_folderpath))

    captured = capsys.readouterr()
    assert result['exit_code'] == 1
    assert result['success'] is False
    assert f"Failed to find {missing_folderpath} folder" in captured.err
    assert LSK_FILENAME in captured.err
    assert 'PVC Coords' not in captured.out

  def test_missing_lsk_exit_status(self, tmp_path, capsys):
    """Test that main exits with 1 when the folder has no leap seconds kernel."""
    result = main(data_folderpath=str(tmp_path))

    captured = capsys.readouterr()
    assert result['exit_code'] == 1
    assert LSK_FILENAME in captured.err


class TestBuildConfig:
  """Tests for build_config function."""

  def test_defaults(self, orbit_data_path):
    """Test that no arguments give the default drag scenario."""
    config = build_config()

    assert config.epoch_dt         == datetime(2017, 12, 20, 23, 30, 0)
    assert config.sma              == SCENARIO.ORBIT.SMA
    assert config.ecc              == SCENARIO.ORBIT.ECC
    assert config.inc              == pytest.approx(7.0 * CONVERTER.RAD_PER_DEG)
    assert config.position_angle   == 'mean'
    assert config.propagation_type == 'keplerian'
    assert config.duration         == 10.0
    assert config.step             == 1.0
    assert config.include_drag is True
    assert config.gravity_harmonics_list == []
    assert config.data_folderpath  == orbit_data_path.absolute()
    assert config.log_filepath is None
    assert not any(config.user_set.values())

  def test_scenario_file_overrides(self, scenarios_path):
    """Test precedence: defaults < scenario file < arguments."""
    config = build_config(
      scenario_filepath = str(scenarios_path / 'leo_cartesian.yaml'),
      duration          = 120.0,
    )

    assert config.sma              == 6778137.0
    assert config.ecc              == 0.001
    assert config.inc              == pytest.approx(51.6 * CONVERTER.RAD_PER_DEG)
    assert config.position_angle   == 'true'
    assert config.mass             == 500.0
    assert config.cd               == 2.2
    assert config.area_drag        == 10.0
    assert config.propagation_type == 'cartesian'
    assert config.step             == 10.0
    assert config.duration         == 120.0
    assert config.user_set['sma']
    assert config.user_set['duration']
    assert not config.user_set['rho_ref']

  def test_unknown_key_warning(self, scenarios_path, capsys):
    """Test that unknown scenario keys are reported and ignored."""
    build_config(scenario_filepath=str(scenarios_path / 'leo_cartesian.yaml'))

    captured = capsys.readouterr()
    assert "[WARNING] Unknown scenario key 'notes'" in captured.out

  @pytest.mark.parametrize("kwargs", [
    {'propagation_type'  : 'equinoctial'},
    {'output_format'     : 'json'},
    {'gravity_harmonics' : ['J5']},
    {'step'              : 0.0},
    {'step'              : -1.0},
    {'duration'          : np.inf},
  ])
  def test_error_invalid_values(self, kwargs):
    """Test that invalid arguments raise ValueError."""
    with pytest.raises(ValueError):
      build_config(**kwargs)

  def test_error_missing_scenario_file(self, tmp_path, capsys):
    """Test that a missing scenario file is reported by build_config and main."""
    with pytest.raises(FileNotFoundError):
      build_config(scenario_filepath=str(tmp_path / 'missing.yaml'))

    result = main(scenario_filepath=str(tmp_path / 'missing.yaml'))
    assert result['exit_code'] == 1
    assert 'Scenario file not found' in capsys.readouterr().err

  def test_error_non_numeric_value(self, tmp_path):
    """Test that non-numeric scenario values are rejected."""
    scenario_filepath = tmp_path / 'bad.yaml'
    scenario_filepath.write_text("orbit:\n  sma__m: large\n")

    with pytest.raises(ValueError, match="orbit.sma__m"):
      build_config(scenario_filepath=str(scenario_filepath))

  def test_timezone_aware_epoch(self):
    """Test that an aware epoch is converted to naive UTC."""
    epoch = datetime(2017, 12, 21, 1, 30, 0, tzinfo=timezone(timedelta(hours=2)))

    config = build_config(epoch=epoch)

    assert config.epoch_dt == datetime(2017, 12, 20, 23, 30, 0)
    assert config.user_set['epoch']

  def test_setup_paths_env(self, monkeypatch, tmp_path):
    """Test that the data folder comes from the argument, then the environment variable."""
    monkeypatch.setenv('DRAG_PROPAGATOR_DATA', str(tmp_path))
    paths = setup_paths()
    assert paths['data_folderpath'] == tmp_path.absolute()
    assert paths['lsk_filepath']    == tmp_path.absolute() / LSK_FILENAME

    paths = setup_paths(data_folderpath=str(tmp_path / 'other'))
    assert paths['data_folderpath'] == (tmp_path / 'other').absolute()

    monkeypatch.delenv('DRAG_PROPAGATOR_DATA')
    paths = setup_paths()
    assert paths['data_folderpath'] == (Path.home() / 'orbit-data').absolute()


class TestCommandLine:
  """Tests for parse_command_line_arguments function."""

  def test_defaults(self):
    """Test that an empty command line leaves every scenario option unset."""
    args = parse_command_line_arguments([])

    assert args.data_folderpath    is None
    assert args.scenario_filepath  is None
    assert args.epoch              is None
    assert args.duration           is None
    assert args.step               is None
    assert args.propagation_type   is None
    assert args.include_drag       is True
    assert args.gravity_harmonics  == []
    assert args.output_format      == 'pv'

  def test_options(self):
    """Test parsing of typed options."""
    args = parse_command_line_arguments([
      '--data-folderpath',   '/tmp/orbit-data',
      '--epoch',             '2017-12-20T23:30:00',
      '--duration',          '-60',
      '--step',              '5',
      '--propagation-type',  'CARTESIAN',
      '--gravity-harmonics', 'j2', 'J4',
      '--output-format',     'coe',
      '--no-drag',
    ])

    assert args.data_folderpath   == '/tmp/orbit-data'
    assert args.epoch             == datetime(2017, 12, 20, 23, 30, 0)
    assert args.duration          == -60.0
    assert args.step              == 5.0
    assert args.propagation_type  == 'cartesian'
    assert args.gravity_harmonics == ['J2', 'J4']
    assert args.output_format     == 'coe'
    assert args.include_drag is False

  @pytest.mark.parametrize("argv", [
    ['--propagation-type', 'equinoctial'],
    ['--gravity-harmonics', 'J7'],
    ['--output-format', 'json'],
  ])
  def test_error_bad_choice(self, argv):
    """Test that invalid choices exit with an argparse error."""
    with pytest.raises(SystemExit):
      parse_command_line_arguments(argv)


class TestTimeHelper:
  """Tests for epoch parsing and span formatting."""

  @pytest.mark.parametrize("time_str", [
    "2017-12-20T23:30:00",
    "2017-12-20 23:30:00",
    "2017-12-20T23:30:00Z",
    "2017-12-21T01:30:00+02:00",
    "2017-12-20T18:30:00-05:00",
  ])
  def test_parse_time(self, time_str):
    """Test that equivalent epoch strings parse to the same naive UTC datetime."""
    utc_dt = parse_time(time_str)

    assert utc_dt == datetime(2017, 12, 20, 23, 30, 0)
    assert utc_dt.tzinfo is None

  @pytest.mark.parametrize("time_str", ["yesterday", "2017-13-01T00:00:00", ""])
  def test_error_parse_time(self, time_str):
    """Test that malformed epochs raise ValueError."""
    with pytest.raises(ValueError):
      parse_time(time_str)

  @pytest.mark.parametrize("seconds, expected", [
    (10.0,      "+0d 00h 00m 10.000s"),
    (-10.0,     "-0d 00h 00m 10.000s"),
    (-3725.5,   "-0d 01h 02m 05.500s"),
    (98765.432, "+1d 03h 26m 05.432s"),
  ])
  def test_format_time_offset(self, seconds, expected):
    """Test span formatting."""
    assert format_time_offset(seconds) == expected
