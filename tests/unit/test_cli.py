"""
命令行接口单元测试
"""

import json

from typer.testing import CliRunner

from cpic import __version__
from cpic.cli.main import app
from cpic.config import load_config
from cpic.image import EntryType
from cpic.utils.logging import OutputLevel, get_output_facade

from image_builders import build_image, read_image

runner = CliRunner()


class TestMainApp:
    """主应用测试"""

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"cpic v{__version__}" in result.output

    def test_example(self, tmp_path):
        """测试生成示例描述文件"""
        path = tmp_path / "cpic.yaml"
        result = runner.invoke(app, ["example", "-o", str(path)])

        assert result.exit_code == 0
        config = load_config(path)
        assert config.source.name == "coreos_production_pxe_image.cpio.gz"


class TestBuildCommand:
    """build 命令测试"""

    def test_build(self, tmp_path, sample_image, cloud_config):
        """测试构建 OEM 镜像"""
        output = tmp_path / "oem.cpio.gz"
        result = runner.invoke(app, [
            "build", str(sample_image),
            "-c", str(cloud_config),
            "-o", str(output),
        ])

        assert result.exit_code == 0, result.output
        entries = read_image(output.read_bytes())
        assert [name for _, name, _ in entries] == [
            "etc",
            "etc/foo",
            "usr",
            "usr/share",
            "usr/share/oem",
            "usr/share/oem/cloud-config.yml",
        ]
        assert entries[-1] == (EntryType.REGULAR, "usr/share/oem/cloud-config.yml", b"abc")

    def test_build_default_output(self, tmp_path, sample_image, cloud_config, monkeypatch):
        """测试未指定 -o 时写入当前目录下的同名文件"""
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)

        result = runner.invoke(app, ["build", str(sample_image), "-c", str(cloud_config)])

        assert result.exit_code == 0, result.output
        assert len(read_image((workdir / sample_image.name).read_bytes())) == 6

    def test_build_zstd(self, tmp_path, sample_image, cloud_config):
        output = tmp_path / "oem.cpio.zst"
        result = runner.invoke(app, [
            "build", str(sample_image),
            "-c", str(cloud_config),
            "-o", str(output),
            "--format", "zstd",
            "--level", "3",
        ])

        assert result.exit_code == 0, result.output
        assert len(read_image(output.read_bytes())) == 6

    def test_root_verbose_enables_debug(self, tmp_path, sample_image, cloud_config):
        """测试根命令的 -v 对 build 生效"""
        result = runner.invoke(app, [
            "-v", "build", str(sample_image),
            "-c", str(cloud_config),
            "-o", str(tmp_path / "oem.cpio.gz"),
        ])

        assert result.exit_code == 0, result.output
        assert get_output_facade().get_level() == OutputLevel.DEBUG
        assert "DEBUG" in result.output

    def test_default_level_without_verbose(self, tmp_path, sample_image, cloud_config):
        result = runner.invoke(app, [
            "build", str(sample_image),
            "-c", str(cloud_config),
            "-o", str(tmp_path / "oem.cpio.gz"),
        ])

        assert result.exit_code == 0, result.output
        assert get_output_facade().get_level() == OutputLevel.INFO

    def test_non_utf8_entry_name(self, tmp_path, cloud_config):
        """测试条目名不是合法 UTF-8 时详细日志仍可输出，名字原样复制"""
        image = tmp_path / "latin1.cpio.gz"
        image.write_bytes(build_image([(EntryType.REGULAR, "etc/caf\udce9", b"x")]))
        output = tmp_path / "oem.cpio.gz"

        result = runner.invoke(app, [
            "-v", "build", str(image),
            "-c", str(cloud_config),
            "-o", str(output),
        ])

        assert result.exit_code == 0, result.output
        assert "etc/caf\\xe9" in result.output
        assert read_image(output.read_bytes())[0][1] == "etc/caf\udce9"

    def test_missing_cloud_config(self, tmp_path, sample_image):
        """测试 cloud-config 不存在时退出码为 1 且不产生输出"""
        output = tmp_path / "oem.cpio.gz"
        result = runner.invoke(app, [
            "build", str(sample_image),
            "-c", str(tmp_path / "missing.yml"),
            "-o", str(output),
        ])

        assert result.exit_code == 1
        assert not output.exists()

    def test_missing_image(self, tmp_path, cloud_config):
        result = runner.invoke(app, [
            "build", str(tmp_path / "missing.cpio.gz"),
            "-c", str(cloud_config),
        ])
        assert result.exit_code == 1

    def test_no_image(self):
        """测试未提供源镜像"""
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 1

    def test_invalid_level(self, tmp_path, sample_image, cloud_config):
        result = runner.invoke(app, [
            "build", str(sample_image),
            "-c", str(cloud_config),
            "-o", str(tmp_path / "oem.cpio.gz"),
            "--level", "15",
        ])
        assert result.exit_code == 1

    def test_corrupt_image(self, tmp_path, cloud_config):
        """测试源镜像损坏时构建失败"""
        image = tmp_path / "broken.cpio.gz"
        image.write_bytes(b"not an image")
        output = tmp_path / "oem.cpio.gz"

        result = runner.invoke(app, [
            "build", str(image),
            "-c", str(cloud_config),
            "-o", str(output),
        ])

        assert result.exit_code == 1
        assert not output.exists()

    def test_build_with_profile(self, tmp_path, sample_image, cloud_config):
        """测试使用构建描述文件，命令行参数优先"""
        profile = tmp_path / "cpic.yaml"
        profile.write_text(
            f"source: {sample_image.name}\n"
            f"cloud_config: {cloud_config.name}\n"
            "output: from-profile.cpio.gz\n",
            encoding="utf-8",
        )
        output = tmp_path / "from-cli.cpio.gz"

        result = runner.invoke(app, ["build", "-p", str(profile), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
        assert not (tmp_path / "from-profile.cpio.gz").exists()


class TestInspectCommand:
    """inspect 命令测试"""

    def test_inspect_json(self, sample_image):
        result = runner.invoke(app, ["inspect", str(sample_image), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data['compression'] == "gzip"
        assert [e['name'] for e in data['entries']] == [".", "etc", "etc/foo"]
        assert data['entries'][2]['size'] == 4
        assert data['entries'][1]['mode'] == "0755"

    def test_inspect_table(self, sample_image):
        result = runner.invoke(app, ["inspect", str(sample_image)])
        assert result.exit_code == 0
        assert "etc/foo" in result.output

    def test_inspect_non_utf8_name(self, tmp_path):
        """测试条目名不是合法 UTF-8 时以 \\xNN 形式显示"""
        image = tmp_path / "latin1.cpio.gz"
        image.write_bytes(build_image([(EntryType.REGULAR, "etc/caf\udce9", b"x")]))

        result = runner.invoke(app, ["inspect", str(image), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["entries"][0]["name"] == "etc/caf\\xe9"

        result = runner.invoke(app, ["inspect", str(image)])
        assert result.exit_code == 0, result.output
        assert "caf\\xe9" in result.output

    def test_inspect_missing(self, tmp_path):
        result = runner.invoke(app, ["inspect", str(tmp_path / "missing.cpio.gz")])
        assert result.exit_code == 1


class TestValidateCommand:
    """validate 命令测试"""

    def test_valid_profile(self, tmp_path):
        profile = tmp_path / "cpic.yaml"
        profile.write_text("source: pxe.cpio.gz\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", "-p", str(profile)])
        assert result.exit_code == 0

    def test_invalid_profile(self, tmp_path):
        profile = tmp_path / "cpic.yaml"
        profile.write_text("source: pxe.cpio.gz\ncompression:\n  level: 30\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", "-p", str(profile)])
        assert result.exit_code == 1
