import json

import pytest

from autoshow import options, tasks
from autoshow.config import Settings
from autoshow.dispatch import Dispatcher
from autoshow.errors import BackendError, ConfigurationError
from autoshow.prompt import FrontMatter

UTTERANCES = {
    'utterances': [
        {'speaker': 1, 'start': 0, 'text': 'Hello'},
        {'speaker': 2, 'start': 61000, 'text': 'Hi'},
    ],
}


class FakeAdapter:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def invoke(self, payload):
        self.calls.append(payload)
        if self.error:
            raise self.error
        return self.result


def _make_job(tmp_path, name='episode'):
    job_id = str(tmp_path / name)
    (tmp_path / f'{name}.wav').write_bytes(b'RIFF')
    return job_id


def test_run_pipeline_with_llm(tmp_path):
    job_id = _make_job(tmp_path)
    stt = FakeAdapter(result=UTTERANCES)
    llm = FakeAdapter(result='## Episode Summary\n\nGreat talk.')
    config = options.resolve({'transcriptService': 'assembly', 'speakerLabels': True, 'llm': 'claude'})

    written = tasks.run_pipeline(
        job_id,
        config,
        FrontMatter(title='Episode'),
        transcription=Dispatcher('transcription', {'assembly': stt}),
        llm=Dispatcher('llm', {'claude': llm}),
    )

    assert written == f'{job_id}-claude-shownotes.md'
    document = (tmp_path / 'episode-claude-shownotes.md').read_text()
    assert document.startswith('---\n')
    assert 'Great talk.' in document
    assert document.endswith('## Transcript\n\nSpeaker 1 (00:00): Hello\nSpeaker 2 (01:01): Hi\n')

    assert stt.calls[0].job_id == job_id
    assert stt.calls[0].speaker_labels is True
    bundle = llm.calls[0].prompt
    assert bundle.index('title: "Episode"') < bundle.index('## Transcript') < bundle.index('Speaker 2 (01:01): Hi')
    assert llm.calls[0].model is None

    for ext in ('.wav', '.txt', '.md', '.lrc'):
        assert not (tmp_path / f'episode{ext}').exists()


def test_run_pipeline_without_llm_skips_generation(tmp_path):
    job_id = _make_job(tmp_path)
    llm = FakeAdapter(result='never')
    config = options.resolve({'transcriptService': 'deepgram', 'noCleanUp': True})
    words = [{'word': 'hello', 'start': 0.0}, {'word': 'world', 'start': 0.4}]

    written = tasks.run_pipeline(
        job_id,
        config,
        '---\ntitle: "x"\n---',
        transcription=Dispatcher('transcription', {'deepgram': FakeAdapter(result=words)}),
        llm=Dispatcher('llm', {'claude': llm}),
    )

    assert written == f'{job_id}-shownotes.md'
    assert llm.calls == []
    document = (tmp_path / 'episode-shownotes.md').read_text()
    assert document == '---\ntitle: "x"\n---\n\n## Transcript\n\nhello world\n'
    assert (tmp_path / 'episode.txt').read_text() == 'hello world'
    assert (tmp_path / 'episode.wav').exists()


def test_run_pipeline_failure_leaves_artifacts(tmp_path):
    job_id = _make_job(tmp_path)
    config = options.resolve({'transcriptService': 'assembly', 'llm': 'gemini'})
    failing = FakeAdapter(error=RuntimeError('quota exceeded'))

    with pytest.raises(BackendError) as excinfo:
        tasks.run_pipeline(
            job_id,
            config,
            FrontMatter(),
            transcription=Dispatcher('transcription', {'assembly': FakeAdapter(result=UTTERANCES)}),
            llm=Dispatcher('llm', {'gemini': failing}),
        )

    assert excinfo.value.backend == 'gemini'
    assert (tmp_path / 'episode.wav').exists()
    assert (tmp_path / 'episode.txt').exists()
    assert (tmp_path / 'episode.md').exists()
    assert not (tmp_path / 'episode-gemini-shownotes.md').exists()


def test_run_pipeline_custom_destination(tmp_path):
    job_id = _make_job(tmp_path)
    config = options.resolve({'transcriptService': 'assembly'})
    out = tmp_path / 'out' / 'notes.md'
    written = tasks.run_pipeline(
        job_id,
        config,
        FrontMatter(),
        transcription=Dispatcher('transcription', {'assembly': FakeAdapter(result={'text': 'plain'})}),
        llm=Dispatcher('llm', {}),
        destination=str(out),
    )
    assert written == str(out)
    assert out.read_text().endswith('plain\n')


def test_process_file_converts_and_runs(tmp_path, monkeypatch):
    media = tmp_path / 'media' / 'My Talk.mp3'
    media.parent.mkdir()
    media.write_bytes(b'ID3')
    converted = []
    monkeypatch.setattr(tasks.audio_processor, 'convert_to_wav', lambda path, job_id: converted.append((path, job_id)))
    captured = {}

    def fake_run(job_id, config, front_matter, **kwargs):
        captured.update(job_id=job_id, config=config, front_matter=front_matter)
        return 'done.md'

    monkeypatch.setattr(tasks, 'run_pipeline', fake_run)
    settings = Settings(output_dir=str(tmp_path / 'content'))
    result = tasks.process_file(
        str(media),
        {'llm': 'ollama'},
        settings=settings,
        transcription=Dispatcher('transcription', {}),
        llm=Dispatcher('llm', {}),
    )

    expected = tasks.make_job_id(str(tmp_path / 'content'), 'My Talk', str(media.resolve()))
    assert result == 'done.md'
    assert converted == [(str(media), expected)]
    assert captured['job_id'] == expected
    assert expected.startswith(str(tmp_path / 'content' / 'my-talk-'))
    assert captured['config'].llm_service == 'ollama'
    assert captured['front_matter'].title == 'My Talk.mp3'


def test_process_file_same_stem_gets_distinct_job_ids(tmp_path, monkeypatch):
    paths = []
    for folder, name in (('a', 'episode.mp3'), ('b', 'episode.mp3'), ('c', 'Episode!.wav')):
        path = tmp_path / folder / name
        path.parent.mkdir()
        path.write_bytes(b'RIFF')
        paths.append(str(path))
    job_ids = []
    monkeypatch.setattr(tasks.audio_processor, 'convert_to_wav', lambda path, job_id: None)
    monkeypatch.setattr(tasks, 'run_pipeline', lambda job_id, *a, **k: job_ids.append(job_id))

    for path in paths:
        tasks.process_file(
            path,
            {},
            settings=Settings(output_dir=str(tmp_path / 'content')),
            transcription=Dispatcher('transcription', {}),
            llm=Dispatcher('llm', {}),
        )

    assert len(set(job_ids)) == 3
    assert all(j.startswith(str(tmp_path / 'content' / 'episode-')) for j in job_ids)


def test_process_file_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match='File not found'):
        tasks.process_file(
            str(tmp_path / 'nope.mp3'),
            {},
            settings=Settings(output_dir=str(tmp_path)),
            transcription=Dispatcher('transcription', {}),
            llm=Dispatcher('llm', {}),
        )


def test_process_file_rejects_unsupported_type(tmp_path):
    with pytest.raises(ConfigurationError):
        tasks.process_file(
            'notes.pdf',
            {},
            settings=Settings(output_dir=str(tmp_path)),
            transcription=Dispatcher('transcription', {}),
            llm=Dispatcher('llm', {}),
        )


ITEMS = [
    {'showLink': 'https://example.com/3', 'title': 'Third', 'publishDate': '2024-03-03'},
    {'showLink': 'https://example.com/2', 'title': 'Second', 'publishDate': '2024-02-02'},
    {'showLink': 'https://example.com/1', 'title': 'First', 'publishDate': '2024-01-01'},
]


def test_select_items():
    titles = lambda items: [i['title'] for i in items]
    assert titles(tasks.select_items(ITEMS, options.resolve({}))) == ['Third', 'Second', 'First']
    assert titles(tasks.select_items(ITEMS, options.resolve({'order': 'oldest'}))) == ['First', 'Second', 'Third']
    assert titles(tasks.select_items(ITEMS, options.resolve({'skip': 1}))) == ['Second', 'First']
    picked = tasks.select_items(ITEMS, options.resolve({'item': ['https://example.com/2']}))
    assert titles(picked) == ['Second']


def test_process_items_runs_each_selected_item(tmp_path):
    acquired = []

    def acquire(item, job_id):
        acquired.append(job_id)
        with open(f'{job_id}.wav', 'wb') as f:
            f.write(b'RIFF')

    stt = FakeAdapter(result={'text': 'spoken words'})
    written = tasks.process_items(
        ITEMS,
        {'transcriptService': 'assembly', 'skip': 1, 'order': 'oldest'},
        settings=Settings(output_dir=str(tmp_path)),
        acquire=acquire,
        transcription=Dispatcher('transcription', {'assembly': stt}),
        llm=Dispatcher('llm', {}),
    )

    assert acquired == [
        tasks.make_job_id(str(tmp_path), '2024-02-02-Second', 'https://example.com/2'),
        tasks.make_job_id(str(tmp_path), '2024-03-03-Third', 'https://example.com/3'),
    ]
    assert acquired[0].startswith(str(tmp_path / '2024-02-02-second-'))
    assert written == [f'{job_id}-shownotes.md' for job_id in acquired]
    assert len(stt.calls) == 2


def test_process_items_same_title_and_date_get_distinct_job_ids(tmp_path):
    items = [
        {'showLink': 'https://example.com/a', 'title': 'Weekly', 'publishDate': '2024-05-01'},
        {'showLink': 'https://example.com/b', 'title': 'Weekly', 'publishDate': '2024-05-01'},
    ]
    acquired = []

    def acquire(item, job_id):
        acquired.append(job_id)
        with open(f'{job_id}.wav', 'wb') as f:
            f.write(b'RIFF')

    tasks.process_items(
        items,
        {'transcriptService': 'assembly'},
        settings=Settings(output_dir=str(tmp_path)),
        acquire=acquire,
        transcription=Dispatcher('transcription', {'assembly': FakeAdapter(result={'text': 'hi'})}),
        llm=Dispatcher('llm', {}),
    )

    assert len(set(acquired)) == 2
    assert len(list(tmp_path.glob('2024-05-01-weekly-*-shownotes.md'))) == 2


def test_process_items_info_only(tmp_path):
    stt = FakeAdapter(result={'text': 'unused'})
    written = tasks.process_items(
        ITEMS,
        {'info': True, 'skip': 2},
        settings=Settings(output_dir=str(tmp_path)),
        acquire=lambda item, job_id: None,
        transcription=Dispatcher('transcription', {'whisper': stt}),
        llm=Dispatcher('llm', {}),
    )
    assert written == [str(tmp_path / 'items_info.json')]
    assert json.loads((tmp_path / 'items_info.json').read_text()) == [ITEMS[2]]
    assert stt.calls == []
