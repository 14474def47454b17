from tuberelay.i18n import i18n


def test_nested_key_lookup():
    assert i18n.get("error.no_matching_format") == "No matching format available for download."


def test_interpolation():
    assert i18n.get("error.invalid_request", reason="url missing") == "Invalid request: url missing"


def test_locale_falls_back_to_default_for_missing_key():
    # The Japanese catalog has no log messages
    assert i18n.get("log.relay_finished", locale="ja", received=3) == "Relay finished: 3 bytes"


def test_unknown_locale_uses_default():
    assert i18n.get("error.invalid_url", locale="xx") == "Please provide a valid YouTube URL."


def test_unknown_key_returns_key():
    assert i18n.get("error.does_not_exist") == "error.does_not_exist"


def test_translator_binds_locale():
    _ = i18n.translator("ja")

    assert _("error.no_matching_format") == "ダウンロード可能なフォーマットが見つかりません。"
