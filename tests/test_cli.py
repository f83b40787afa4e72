import json
import logging

import pytest

from resume_ai.__main__ import main


@pytest.fixture
def local_mode(monkeypatch, tmp_path):
    """Run the CLI from an empty directory with no credentials and restore root logging afterwards."""
    for name in ('GEMINI_API_KEY', 'GROQ_API_KEY', 'AI_PROVIDER', 'AI_MODEL', 'RESUME_AI_CONFIG'):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield tmp_path
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def write(directory, name, text):
    path = directory / name
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_score_command(local_mode, capsys, sample_resume):
    resume = write(local_mode, 'resume.txt', sample_resume)
    jd = write(local_mode, 'jd.txt', 'Python developer with AWS experience')

    assert main(['--log-dir', str(local_mode / 'logs'), 'score', resume, '--jd', jd]) == 0

    output = json.loads(capsys.readouterr().out)
    assert 50 <= output['score'] <= 95
    assert output['extractedInfo']['email'] == 'jane.doe@example.com'
    assert 'gapAnalysis' in output
    assert list((local_mode / 'logs').glob('app_*.log'))


def test_batch_command(local_mode, capsys):
    first = write(local_mode, 'a.txt', 'Ann Lee\npython developer')
    second = write(local_mode, 'b.txt', 'Bob Ray\njava developer')
    jd = write(local_mode, 'jd.txt', 'python')

    assert main(['--log-dir', str(local_mode / 'logs'), 'batch', first, second, '--jd', jd]) == 0

    output = json.loads(capsys.readouterr().out)
    assert [r['file'] for r in output['results']] == [first, second]
    assert output['stats']['local_results'] == 2


def test_questions_command(local_mode, capsys):
    assert main(['--log-dir', str(local_mode / 'logs'), 'questions', '--title', 'Engineer', '--skills', 'rust']) == 0
    questions = json.loads(capsys.readouterr().out)
    assert questions[0] == 'Tell me about your experience with rust'


def test_missing_file(local_mode):
    assert main(['--log-dir', str(local_mode / 'logs'), 'review', str(local_mode / 'nope.txt')]) == 1


def test_bad_config(local_mode):
    config = write(local_mode, 'bad.yaml', 'llm: [unclosed\n')
    assert main(['--config', config, '--log-dir', str(local_mode / 'logs'), 'review', config]) == 2
