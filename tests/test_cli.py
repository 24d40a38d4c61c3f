"""
Tests for the caption_images command line entry point.

The provider factory is patched so no API key or network is needed.
"""

import pytest

import caption_images
from caption_images import EXIT_ABORTED, EXIT_FAILURE, EXIT_OK, main
from conftest import file_contents, success_line


@pytest.fixture
def workspace(tmp_path, monkeypatch, mock_provider):
    images = tmp_path / "images"
    images.mkdir()
    output = tmp_path / "output"
    prompt = tmp_path / "prompt.txt"
    prompt.write_text("Describe this image.", encoding="utf-8")

    monkeypatch.setenv("TEMP_DIR", str(tmp_path / "temp"))
    monkeypatch.setattr(caption_images, "create_provider", lambda settings: mock_provider)

    args = [
        "--images-dir", str(images),
        "--output-dir", str(output),
        "--prompt-file", str(prompt),
    ]
    return images, output, args


def test_batch_run(workspace, mock_provider):
    images, output, args = workspace
    (images / "a.png").write_bytes(b"png-a")
    (images / "b.jpg").write_bytes(b"jpg-b")
    mock_provider.fetch_file_content = file_contents({
        "file-output": "\n".join([
            success_line("a.png", "First (image)"),
            success_line("b.jpg", "Second image"),
        ]),
    })

    code = main(args + ["--mode", "batch", "--yes"])

    assert code == EXIT_OK
    assert (output / "a.txt").read_text() == "First \\(image\\)"
    assert (output / "b.txt").read_text() == "Second image"
    mock_provider.create_job.assert_awaited_once()
    mock_provider.close.assert_awaited_once()


def test_sync_run_with_caption_extension(workspace, mock_provider):
    images, output, args = workspace
    (images / "a.png").write_bytes(b"png-a")

    code = main(args + ["--mode", "sync", "--ext", "caption", "--yes"])

    assert code == EXIT_OK
    assert (output / "a.caption").read_text() == "A caption"
    mock_provider.create_job.assert_not_awaited()


def test_empty_images_folder(workspace, mock_provider):
    images, _, args = workspace
    (images / ".gitkeep").touch()

    assert main(args + ["--yes"]) == EXIT_FAILURE
    mock_provider.query_image.assert_not_awaited()


def test_missing_model_access(workspace, mock_provider):
    images, _, args = workspace
    (images / "a.png").write_bytes(b"png-a")
    mock_provider.has_model_access.return_value = False

    assert main(args + ["--yes"]) == EXIT_FAILURE
    mock_provider.upload_manifest.assert_not_awaited()


def test_declined_agreement(workspace, mock_provider, monkeypatch):
    images, output, args = workspace
    (images / "a.png").write_bytes(b"png-a")
    # Empty answers take the defaults; the cost agreement defaults to "no"
    monkeypatch.setattr("builtins.input", lambda prompt="": "")

    code = main(args + ["--mode", "sync"])

    assert code == EXIT_ABORTED
    mock_provider.query_image.assert_not_awaited()
    assert not output.exists()


def test_failed_batch_job(workspace, mock_provider):
    from conftest import snapshot
    images, _, args = workspace
    (images / "a.png").write_bytes(b"png-a")
    mock_provider.get_job_status.return_value = snapshot("expired")

    assert main(args + ["--mode", "batch", "--yes"]) == EXIT_FAILURE


@pytest.mark.parametrize("flag, value", [
    ("--rate-limit", "0"),
    ("--max-attempts", "0"),
    ("--chunk-budget-mb", "0"),
    ("--chunk-budget-mb", "500"),
])
def test_invalid_numeric_option_rejected_before_any_prompt(workspace, mock_provider,
                                                           monkeypatch, caplog, flag, value):
    images, _, args = workspace
    (images / "a.png").write_bytes(b"png-a")

    def no_input(prompt=""):
        raise AssertionError("no question should be asked")

    monkeypatch.setattr("builtins.input", no_input)

    assert main(args + [flag, value]) == EXIT_FAILURE
    assert "Invalid settings" in caplog.text
    mock_provider.has_model_access.assert_not_awaited()
    mock_provider.query_image.assert_not_awaited()
