from modcatalog.utils.obfuscate_message import _anonymize_path, obfuscate_message


def test__anonymize_path_windows_path_only() -> None:
    message = r"C:\Users\user\AppData\Local\ModCatalog\settings.json"
    expected = r"C:\Users\...\AppData\Local\ModCatalog\settings.json"
    assert _anonymize_path(message) == expected

    message = r"D:\Users\abc\catalogs\ModCatalog_v0004.json"
    expected = r"D:\Users\...\catalogs\ModCatalog_v0004.json"
    assert _anonymize_path(message) == expected


def test__anonymize_path_linux_mixed_message() -> None:
    message = "Saved catalog 0004 to /home/user/.local/share/ModCatalog/catalogs/ModCatalog_v0004.json"
    expected = "Saved catalog 0004 to /home/.../.local/share/ModCatalog/catalogs/ModCatalog_v0004.json"
    assert _anonymize_path(message) == expected


def test__anonymize_path_macos() -> None:
    message = "Could not read /Users/someone/Library/Logs/ModCatalog/ModCatalog.log"
    expected = "Could not read /Users/.../Library/Logs/ModCatalog/ModCatalog.log"
    assert _anonymize_path(message) == expected


def test_obfuscate_message_leaves_urls_alone() -> None:
    message = "Downloading https://steamcommunity.com/sharedfiles/filedetails/?id=1000001"
    assert obfuscate_message(message) == message
    assert obfuscate_message("/home/user/x", anonymize_path=False) == "/home/user/x"
