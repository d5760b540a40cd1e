import os
import subprocess
import numpy as np
import pytest
from diskfit.workspace import workspace
from conftest import simulator


def test_cleanup_on_success(home):
    cwd = os.getcwd()
    with workspace(str(home), str(home / 'scratch')) as ws:
        path = ws.path
        ws.stage(['molecule_co.inp'])
        ws.activate()
        assert os.path.samefile(os.getcwd(), path)
        assert os.path.exists('molecule_co.inp')
    assert os.getcwd() == cwd
    assert not os.path.exists(path)


def test_cleanup_on_error(home):
    cwd = os.getcwd()
    with pytest.raises(KeyError):
        with workspace(str(home), str(home / 'scratch')) as ws:
            ws.activate()
            raise KeyError('boom')
    assert os.getcwd() == cwd
    assert os.listdir(home / 'scratch') == []


def test_unique_paths(home):
    with workspace(str(home), str(home / 'scratch')) as a, \
            workspace(str(home), str(home / 'scratch')) as b:
        assert a.path != b.path


def test_stage_missing_file(home):
    with pytest.raises(OSError):
        with workspace(str(home), str(home / 'scratch')) as ws:
            ws.stage(['lines.inp'])
    assert os.listdir(home / 'scratch') == []


def test_simulator_failure(home):
    # no inputs were written, so the simulator exits with an error
    with workspace(str(home), str(home / 'scratch'), simulator()) as ws:
        with pytest.raises(subprocess.CalledProcessError) as exc:
            ws.invoke_simulator(30., 40., 16, 100.)
        assert b'missing input files' in exc.value.stderr


def test_simulator_not_found(home):
    with workspace(str(home), str(home / 'scratch'),
                   ('no_such_radmc3d_executable',)) as ws:
        with pytest.raises(OSError):
            ws.invoke_simulator(30., 40., 16, 100.)


def test_cleanup_when_origin_is_gone(home, monkeypatch):
    gone = home / 'gone'
    os.makedirs(gone)
    monkeypatch.chdir(gone)
    with pytest.raises(FileNotFoundError):
        with workspace(str(home), str(home / 'scratch')) as ws:
            ws.activate()
            os.rmdir(gone)
    assert os.listdir(home / 'scratch') == []


def test_failed_removal_is_reported(home, monkeypatch, caplog):
    def refuse(path):
        raise PermissionError('read-only file system')

    monkeypatch.setattr('diskfit.workspace.shutil.rmtree', refuse)
    with pytest.raises(PermissionError):
        with workspace(str(home), str(home / 'scratch')):
            pass
    assert 'could not remove scratch directory' in caplog.text
    assert len(os.listdir(home / 'scratch')) == 1
