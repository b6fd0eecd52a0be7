from __future__ import annotations

from typing import Optional, Tuple

import pytest

from depscout.core.parsers import (
    NpmManifestParser,
    PipManifestParser,
    PubManifestParser,
    detect_file_type,
    get_extension_from_kind,
    get_mime_from_kind,
    get_parser_for,
)
from depscout.exceptions import ParseError, UnsupportedFileTypeError
from depscout.models import PackageManager


PUBSPEC = """\
name: my_app
description: A sample app
version: 1.0.0+1

environment:
  sdk: ">=2.12.0 <3.0.0"

dependencies:
  flutter:
    sdk: flutter
  http: ^0.13.0
  provider: "6.0.5"  # state
  intl:
  path_provider: ^2.0.0

dev_dependencies:
  flutter_test:
    sdk: flutter
  lints: ^2.0.0

flutter:
  uses-material-design: true
"""


# ==============================================================================
# npm
# ==============================================================================


@pytest.mark.unit
class TestNpmManifestParser:
    """Tests for package.json parsing."""

    def test_parses_both_sections(self) -> None:
        content = (
            '{"name": "app", "dependencies": {"lodash": "^4.17.20"},'
            ' "devDependencies": {"jest": "~29.0.0"},'
            ' "peerDependencies": {"react": ">=17"}}'
        )

        manifest = NpmManifestParser().parse(content)

        assert manifest.kind is PackageManager.NPM
        assert manifest.package_manager is PackageManager.NPM
        assert manifest.dependencies == {"lodash": "^4.17.20"}
        assert manifest.dev_dependencies == {"jest": "~29.0.0"}

    def test_no_dev_dependencies_is_none(self) -> None:
        manifest = NpmManifestParser().parse('{"dependencies": {"a": "1.0.0"}}')
        assert manifest.dev_dependencies is None

    def test_empty_object(self) -> None:
        manifest = NpmManifestParser().parse("{}")
        assert manifest.dependencies == {}

    def test_invalid_json(self) -> None:
        with pytest.raises(ParseError, match="Failed to parse package.json") as exc_info:
            NpmManifestParser().parse('{"dependencies": ')

        assert exc_info.value.kind == "npm"

    def test_non_object_section(self) -> None:
        with pytest.raises(ParseError, match="'dependencies' must be an object"):
            NpmManifestParser().parse('{"dependencies": ["lodash"]}')

    @pytest.mark.parametrize(
        "content,expected",
        [
            ('{"dependencies": {}}', True),
            ('{"peerDependencies": {"react": "18"}}', True),
            ('{"name": "x", "version": "1.0.0"}', True),
            ('{"name": "x"}', False),
            ("[1, 2]", False),
            ("not json", False),
        ],
    )
    def test_content_detection(self, content: str, expected: bool) -> None:
        assert NpmManifestParser().can_parse_content(content) is expected

    def test_file_name_hint(self) -> None:
        assert NpmManifestParser().can_parse("garbage", "frontend/Package.JSON") is True


# ==============================================================================
# pip
# ==============================================================================


@pytest.mark.unit
class TestPipManifestParser:
    """Tests for requirements.txt parsing."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("Django==4.1.0", ("Django", "4.1.0")),
            ("requests>=2.25.0", ("requests", "2.25.0")),
            ("numpy~=1.24", ("numpy", "1.24")),
            ("flask", ("flask", "latest")),
            ("requests[socks,security]>=2.25,<3", ("requests", "2.25")),
            ("urllib3<2", ("urllib3", "2")),
            ("pytz!=2020.1", ("pytz", "2020.1")),
            ("  black==23.1.0  # formatter", ("black", "23.1.0")),
            ('typing-extensions>=4.0; python_version < "3.8"', ("typing-extensions", "4.0")),
            ("cryptography==41.0.0 --hash=sha256:abc123", ("cryptography", "41.0.0")),
            ("zope.interface==6.0 \\", ("zope.interface", "6.0")),
        ],
    )
    def test_parse_line(self, line: str, expected: Tuple[str, str]) -> None:
        assert PipManifestParser().parse_line(line) == expected

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "   ",
            "# comment",
            "-r base.txt",
            "--requirement dev.txt",
            "-e .",
            "--index-url https://pypi.example/simple",
            "git+https://github.com/org/repo.git",
            "https://example.com/pkg.whl",
            "mypkg @ https://example.com/mypkg.zip",
            "==1.0",
        ],
    )
    def test_skipped_lines(self, line: str) -> None:
        assert PipManifestParser().parse_line(line) is None

    def test_parse_full_file(self) -> None:
        content = "# deps\r\nrequests==2.25.0\r\n\r\n-r other.txt\r\nflask>=1.0\r\n"

        manifest = PipManifestParser().parse(content)

        assert manifest.kind is PackageManager.PIP
        assert manifest.dependencies == {"requests": "2.25.0", "flask": "1.0"}
        assert manifest.dev_dependencies is None

    def test_later_line_wins(self) -> None:
        manifest = PipManifestParser().parse("six==1.0\nsix==1.16.0\n")
        assert manifest.dependencies == {"six": "1.16.0"}

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("requests==2.0", True),
            ("# header\nflask>=1.0", True),
            ("requests[socks]", True),
            ("-e git+https://x", True),
            ("just some text", False),
        ],
    )
    def test_content_detection(self, content: str, expected: bool) -> None:
        assert PipManifestParser().can_parse_content(content) is expected


# ==============================================================================
# pub
# ==============================================================================


@pytest.mark.unit
class TestPubManifestParser:
    """Tests for pubspec.yaml parsing."""

    def test_parses_direct_children_only(self) -> None:
        manifest = PubManifestParser().parse(PUBSPEC)

        assert manifest.kind is PackageManager.PUB
        assert manifest.dependencies == {
            "http": "^0.13.0",
            "provider": "6.0.5",
            "intl": "any",
            "path_provider": "^2.0.0",
        }
        assert manifest.dev_dependencies == {"lints": "^2.0.0"}

    def test_sdk_and_environment_ignored(self) -> None:
        manifest = PubManifestParser().parse(PUBSPEC)

        assert "flutter" not in manifest.dependencies
        assert "sdk" not in manifest.dependencies
        assert "flutter_test" not in (manifest.dev_dependencies or {})

    def test_git_source_skipped(self) -> None:
        content = (
            "name: app\n"
            "dependencies:\n"
            "  my_fork:\n"
            "    git:\n"
            "      url: https://github.com/me/fork.git\n"
            "  http: ^1.0.0\n"
        )

        manifest = PubManifestParser().parse(content)

        assert manifest.dependencies == {"http": "^1.0.0"}

    @pytest.mark.parametrize("sdk_package", ["flutter", "flutter_test"])
    def test_bare_flutter_sdk_entry_skipped(self, sdk_package: str) -> None:
        content = f"name: app\ndependencies:\n  {sdk_package}:\n  http: ^0.13.0\n"

        manifest = PubManifestParser().parse(content)

        assert manifest.dependencies == {"http": "^0.13.0"}

    def test_empty_value_at_end_of_file_is_any(self) -> None:
        manifest = PubManifestParser().parse("name: app\ndependencies:\n  meta:\n")
        assert manifest.dependencies == {"meta": "any"}

    def test_crlf_content(self) -> None:
        content = "name: app\r\ndependencies:\r\n  http: ^0.13.0\r\n"
        assert PubManifestParser().parse(content).dependencies == {"http": "^0.13.0"}

    def test_no_dev_dependencies_is_none(self) -> None:
        manifest = PubManifestParser().parse("name: app\ndependencies:\n  http: ^1.0.0\n")
        assert manifest.dev_dependencies is None

    @pytest.mark.parametrize(
        "content,expected",
        [
            ("name: app\ndependencies:\n  http: any\n", True),
            ("dev_dependencies:\n  flutter:\n    sdk: flutter\n", True),
            ("dependencies:\n  http: any\n", False),
            ("name: app\nversion: 1.0.0\n", False),
        ],
    )
    def test_content_detection(self, content: str, expected: bool) -> None:
        assert PubManifestParser().can_parse_content(content) is expected


# ==============================================================================
# Detection
# ==============================================================================


@pytest.mark.unit
class TestDetectFileType:
    """Tests for detection order and fallbacks."""

    @pytest.mark.parametrize(
        "content,file_name,kind",
        [
            ('{"dependencies": {"lodash": "^4.17.20"}}', None, PackageManager.NPM),
            ("requests==2.25.0\nflask>=1.0\n", None, PackageManager.PIP),
            (PUBSPEC, None, PackageManager.PUB),
            ("flask\ndjango\n", "requirements-dev.txt", PackageManager.PIP),
            ("name: app\n", "pubspec.yaml", PackageManager.PUB),
        ],
    )
    def test_detects_kind(self, content: str, file_name: Optional[str], kind: PackageManager) -> None:
        assert get_parser_for(content, file_name).kind is kind

    def test_file_name_hint_beats_content(self) -> None:
        """Test a matching file name is trusted over content heuristics."""
        content = "name: app\ndependencies:\n  http: any\n"

        assert get_parser_for(content).kind is PackageManager.PUB
        assert get_parser_for(content, "requirements.txt").kind is PackageManager.PIP

    def test_npm_detected_before_pub(self) -> None:
        content = '{"name": "x", "version": "1.0.0", "dependencies:": 1}'
        assert get_parser_for(content).kind is PackageManager.NPM

    def test_detect_and_parse(self) -> None:
        manifest = detect_file_type("Django==4.1.0")

        assert manifest.kind is PackageManager.PIP
        assert manifest.dependencies == {"Django": "4.1.0"}

    @pytest.mark.parametrize("content", ["", "   \n\t  "])
    def test_empty_content(self, content: str) -> None:
        with pytest.raises(ParseError, match="File content is empty"):
            detect_file_type(content)

    def test_broken_json(self) -> None:
        with pytest.raises(ParseError, match="Invalid JSON format"):
            detect_file_type('{"dependencies": {')

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedFileTypeError, match="Unable to detect file type"):
            detect_file_type("hello world")

    def test_unsupported_is_parse_error(self) -> None:
        with pytest.raises(ParseError):
            detect_file_type("<xml/>")


@pytest.mark.unit
class TestKindHelpers:
    """Tests for extension and MIME lookups."""

    @pytest.mark.parametrize(
        "kind,extension,mime",
        [
            (PackageManager.NPM, ".json", "application/json"),
            (PackageManager.PIP, ".txt", "text/plain"),
            (PackageManager.PUB, ".yaml", "application/x-yaml"),
        ],
    )
    def test_lookups(self, kind: PackageManager, extension: str, mime: str) -> None:
        assert get_extension_from_kind(kind) == extension
        assert get_mime_from_kind(kind) == mime

    def test_accepts_plain_string(self) -> None:
        assert get_extension_from_kind("npm") == ".json"
