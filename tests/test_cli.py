import pandas as pd
import pytest

from report_utils.cli import main
from survey_utils import ITEMS


def test_simulate_writes_csv(tmp_path, capsys):
    out = tmp_path / 'bfi.csv'
    assert main(['simulate', '--out', str(out), '--respondents', '120', '--seed', '4']) == 0

    df = pd.read_csv(out)
    assert len(df) == 120
    assert set(ITEMS) <= set(df.columns)
    assert capsys.readouterr().out.strip() == str(out)


def test_render_from_csv(tmp_path, capsys):
    data = tmp_path / 'bfi.csv'
    main(['simulate', '--out', str(data), '--respondents', '250'])
    capsys.readouterr()

    html = tmp_path / 'lesson.html'
    xlsx = tmp_path / 'lesson.xlsx'
    code = main(['render', '--out', str(html), '--xlsx', str(xlsx),
                 '--data', str(data), '--seed', '1', '--log-level', 'INFO'])

    assert code == 0
    assert html.exists() and xlsx.exists()
    assert capsys.readouterr().out.split() == [str(html), str(xlsx)]


def test_subcommand_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_unknown_log_level(tmp_path):
    with pytest.raises(ValueError, match="Unknown log level"):
        main(['simulate', '--out', str(tmp_path / 'x.csv'), '--log-level', 'LOUD'])
