"""Tests for CLI interface."""

import json
import os

from click.testing import CliRunner

from prot2py.generator.cli import cli

FILE_DIR = os.path.dirname(os.path.realpath(__file__))
SCHEMA = f"{FILE_DIR}/header.p2p"


def describe_gen_command():
    def generates_python_code(tmp_path, expect):
        output_file = tmp_path / "header.py"
        runner = CliRunner()
        result = runner.invoke(cli, ["gen", "-i", SCHEMA, "-o", str(output_file)])

        expect(result.exit_code) == 0
        content = output_file.read_text()
        expect("class Hdr(Struct):" in content) == True
        expect("@dataclass" in content) == True
        expect("from prot2py.proto import (" in content) == True

    def uses_the_runtime_import(tmp_path, expect):
        output_file = tmp_path / "header.py"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["gen", "-i", SCHEMA, "-o", str(output_file), "--runtime-import", "vendored.rt"],
        )

        expect(result.exit_code) == 0
        expect("from vendored.rt import (" in output_file.read_text()) == True

    def reads_the_runtime_import_from_the_environment(tmp_path, expect):
        output_file = tmp_path / "header.py"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["gen", "-i", SCHEMA, "-o", str(output_file)],
            env={"PROT2PY_RUNTIME_IMPORT": "from_env"},
        )

        expect(result.exit_code) == 0
        expect("from from_env import (" in output_file.read_text()) == True

    def fails_with_missing_input(tmp_path, expect):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["gen", "-i", "/nonexistent/file.p2p", "-o", str(tmp_path / "out.py")]
        )
        expect(result.exit_code) == 1

    def fails_on_invalid_schemas_without_writing(tmp_path, expect):
        schema = tmp_path / "bad.p2p"
        schema.write_text("bitfield Bad { a: 3 }")
        output_file = tmp_path / "bad.py"
        runner = CliRunner()
        result = runner.invoke(cli, ["gen", "-i", str(schema), "-o", str(output_file)])

        expect(result.exit_code) == 1
        expect("error" in result.output) == True
        expect(output_file.exists()) == False

    def fails_on_syntax_errors(tmp_path, expect):
        schema = tmp_path / "bad.p2p"
        schema.write_text("bitfield {")
        runner = CliRunner()
        result = runner.invoke(cli, ["gen", "-i", str(schema), "-o", str(tmp_path / "bad.py")])

        expect(result.exit_code) == 1

    def requires_all_options(expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["gen", "-i", SCHEMA])
        expect(result.exit_code) != 0
        expect("Missing option" in result.output) == True


def describe_runtime_command():
    def copies_the_python_runtime(tmp_path, expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["runtime", "-o", str(tmp_path)])

        expect(result.exit_code) == 0
        runtime_dir = tmp_path / "prot2py_runtime"
        expect((runtime_dir / "__init__.py").is_file()) == True
        expect((runtime_dir / "serialization.py").is_file()) == True

    def runs_generated_code_against_the_copy(tmp_path, monkeypatch, expect):
        runner = CliRunner()
        runner.invoke(cli, ["runtime", "-o", str(tmp_path), "--name", "p2p_rt_copy"])
        output_file = tmp_path / "header_codec.py"
        result = runner.invoke(
            cli,
            ["gen", "-i", SCHEMA, "-o", str(output_file), "--runtime-import", "p2p_rt_copy"],
        )
        expect(result.exit_code) == 0

        monkeypatch.syspath_prepend(str(tmp_path))
        namespace: dict = {"__name__": "header_codec"}
        exec(output_file.read_text(), namespace)
        Hdr, Flags, AddrNone = namespace["Hdr"], namespace["Flags"], namespace["AddrNone"]
        Kind, Flag = namespace["Kind"], namespace["Flag"]

        value = Hdr(
            flags=Flags(kind=Kind.A, flag=Flag.off, count=0), seq=5, length=0, addr=AddrNone()
        )
        expect(value.pack()) == b"\x00\x05\x00\x00"
        expect(Hdr.unpack(value.pack())) == (value, 4)


def describe_info_command():
    def prints_layouts_and_sizes(expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["info", "-i", SCHEMA])

        expect(result.exit_code) == 0
        expect("Flags" in result.output) == True
        expect("hdr" in result.output) == True
        expect("reserved" in result.output) == True

    def outputs_json(expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["info", "-i", SCHEMA, "--json"])

        expect(result.exit_code) == 0
        data = json.loads(result.output)
        flags = data["bitfields"]["Flags"]
        expect(flags["width"]) == 8
        expect(flags["reserved_mask"]) == 0x80
        expect(flags["slots"][0]) == {
            "name": "kind",
            "offset": 0,
            "width": 2,
            "values": {"A": 0, "B": 1, "C": 2},
        }
        expect(data["structs"]["hdr"]["min_size"]) == 4
        expect(data["structs"]["hdr"]["max_size"]) == 6
        expect(data["structs"]["hdr"]["kind"]) == "variant"
        expect(data["structs"]["hdr"]["variants"]) == {"addr": {"addr_none": 0, "addr_short": 2}}


def describe_builtin_command():
    def generates_the_ieee802154_package(tmp_path, expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["builtin", "-o", str(tmp_path), "--package", "ieee"])

        expect(result.exit_code) == 0
        expect((tmp_path / "ieee" / "__init__.py").is_file()) == True
        expect((tmp_path / "ieee" / "mac_frame.py").is_file()) == True
        expect((tmp_path / "ieee" / "beacon" / "gts_info.py").is_file()) == True


def describe_main_group():
    def shows_help(expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])
        expect(result.exit_code) == 0
        expect("gen" in result.output) == True
        expect("runtime" in result.output) == True
        expect("builtin" in result.output) == True

    def accepts_verbose_logging(tmp_path, expect):
        runner = CliRunner()
        result = runner.invoke(cli, ["-v", "info", "-i", SCHEMA, "--json"])
        expect(result.exit_code) == 0
