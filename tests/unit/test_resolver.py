import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "installers" / "remote"))

from fleetdrop_core.config import InstallRequest
from fleetdrop_core.errors import UnknownArtifactType
from fleetdrop_core.models import ArtifactKind
from fleetdrop_installer.resolver import classify, kind_from_url


class ClassifierTests(unittest.TestCase):
    def test_pkg_with_query(self):
        req = InstallRequest(source_url="https://example.com/app.pkg?token=x")
        self.assertIs(classify(req), ArtifactKind.PACKAGE)

    def test_dmg_suffix(self):
        req = InstallRequest(source_url="https://example.com/app.dmg")
        self.assertIs(classify(req), ArtifactKind.DISK_IMAGE)

    def test_uppercase_suffix(self):
        self.assertIs(kind_from_url("https://example.com/App.DMG"), ArtifactKind.DISK_IMAGE)

    def test_unknown_suffix(self):
        req = InstallRequest(source_url="https://example.com/app.bin")
        with self.assertRaises(UnknownArtifactType) as ctx:
            classify(req)
        self.assertEqual(ctx.exception.exit_code, 10)

    def test_suffix_mid_path_does_not_match(self):
        self.assertIsNone(kind_from_url("https://example.com/app.pkg.zip"))

    def test_forced_kind_wins_over_url(self):
        req = InstallRequest(source_url="https://example.com/app.dmg", forced_type="PKG")
        self.assertIs(classify(req), ArtifactKind.PACKAGE)

    def test_forced_kind_without_extension(self):
        req = InstallRequest(source_url="https://example.com/download?id=42", forced_type="dmg")
        self.assertIs(classify(req), ArtifactKind.DISK_IMAGE)

    def test_unrecognised_forced_kind(self):
        req = InstallRequest(source_url="https://example.com/app.pkg", forced_type="zip")
        with self.assertRaises(UnknownArtifactType):
            classify(req)

    def test_deterministic(self):
        req = InstallRequest(source_url="https://example.com/app.pkg?x=1")
        self.assertEqual({classify(req) for _ in range(5)}, {ArtifactKind.PACKAGE})


class ArtifactKindTests(unittest.TestCase):
    def test_artifact_names(self):
        self.assertEqual(ArtifactKind.PACKAGE.artifact_name, "package.pkg")
        self.assertEqual(ArtifactKind.DISK_IMAGE.artifact_name, "package.dmg")

    def test_from_token_accepts_leading_dot(self):
        self.assertIs(ArtifactKind.from_token(".dmg"), ArtifactKind.DISK_IMAGE)


if __name__ == "__main__":
    unittest.main()
