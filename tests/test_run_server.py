import src.run_server as run_server


def test_server_starts_with_settings_from_env(tmp_path, monkeypatch):
    calls = []

    def fake_run(app, host, port, log_config):
        calls.append({"app": app, "host": host, "port": port})

    monkeypatch.setattr(run_server.uvicorn, "run", fake_run)
    monkeypatch.setenv("OMNIVORE_API_KEY", "key")

    exit_code = run_server.main(
        ["--host", "0.0.0.0", "--port", "9000", "--log-dir", str(tmp_path / "logs")]
    )

    assert exit_code == 0
    assert calls[0]["host"] == "0.0.0.0"
    assert calls[0]["port"] == 9000
    assert calls[0]["app"].title == "Omnivore Annotator"
    assert (tmp_path / "logs" / "annotator.log").exists()


def test_invalid_configuration_exits_two(tmp_path, monkeypatch):
    monkeypatch.setenv("BEST_OF_N", "many")

    exit_code = run_server.main(["--log-dir", str(tmp_path / "logs")])

    assert exit_code == 2


def test_server_crash_exits_one(tmp_path, monkeypatch):
    def exploding_run(*args, **kwargs):
        raise RuntimeError("port in use")

    monkeypatch.setattr(run_server.uvicorn, "run", exploding_run)

    exit_code = run_server.main(["--log-dir", str(tmp_path / "logs")])

    assert exit_code == 1
