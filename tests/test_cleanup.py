import logging

from autoshow import cleanup


def test_cleanup_removes_present_files_and_ignores_missing(tmp_path, caplog):
    job_id = str(tmp_path / 'episode')
    (tmp_path / 'episode.wav').write_bytes(b'RIFF')
    (tmp_path / 'episode.md').write_text('---\n---\n')
    (tmp_path / 'episode-claude-shownotes.md').write_text('keep me')

    caplog.set_level(logging.INFO, logger='autoshow.cleanup')
    outcomes = cleanup.cleanup(job_id)

    statuses = {o.path: o.status for o in outcomes}
    assert statuses == {
        f'{job_id}.wav': cleanup.DELETED,
        f'{job_id}.txt': cleanup.MISSING,
        f'{job_id}.md': cleanup.DELETED,
        f'{job_id}.lrc': cleanup.MISSING,
    }
    assert not (tmp_path / 'episode.wav').exists()
    assert not (tmp_path / 'episode.md').exists()
    assert (tmp_path / 'episode-claude-shownotes.md').exists()
    assert f'{job_id}.wav' in caplog.text
    assert f'{job_id}.md' in caplog.text


def test_cleanup_logs_other_failures(tmp_path, monkeypatch, caplog):
    job_id = str(tmp_path / 'episode')

    def fake_remove(path):
        if path.endswith('.txt'):
            raise PermissionError(13, 'Permission denied')
        raise FileNotFoundError(path)

    monkeypatch.setattr(cleanup.os, 'remove', fake_remove)
    outcomes = cleanup.cleanup(job_id)

    failed = [o for o in outcomes if o.status == cleanup.FAILED]
    assert len(failed) == 1
    assert failed[0].path == f'{job_id}.txt'
    assert 'Permission denied' in str(failed[0].error)
    assert 'Error deleting file' in caplog.text


def test_temp_paths_are_namespaced_by_job():
    assert cleanup.temp_paths('a/job1') == ['a/job1.wav', 'a/job1.txt', 'a/job1.md', 'a/job1.lrc']
