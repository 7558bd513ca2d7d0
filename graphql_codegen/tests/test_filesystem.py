import pytest

from graphql_codegen.errors import OutputPatternError
from graphql_codegen.pipeline.filesystem import (
    Filesystem,
    compile_output_path,
    is_recursive_wildcard_path,
    is_wildcard_path,
    validate_output_pattern,
)
from graphql_codegen.pipeline.output_stream import AtomicOutputStream


class TestWildcards:
    def test_is_wildcard_path(self):
        assert is_wildcard_path("test/*.ts")
        assert is_wildcard_path("test/file?.ts")
        assert not is_wildcard_path("test/path.ts")

    def test_is_recursive_wildcard_path(self):
        assert is_recursive_wildcard_path("test/**/test.ts")
        assert not is_recursive_wildcard_path("test/*.ts")
        assert not is_recursive_wildcard_path("test/path.ts")

    @pytest.mark.parametrize(
        "pattern,message",
        [
            ("/output/**", "Illegal output pattern, recursive wildcard is not supported: '/output/**'"),
            ("/output/*/", "Illegal output pattern, directory separators are not allowed after wildcards: '/output/*/'"),
            ("/output/*/*.py", "only a single wildcard"),
            ("/output/?.py", "only '*' wildcards"),
        ],
    )
    def test_illegal_output_patterns(self, pattern, message):
        with pytest.raises(OutputPatternError) as exc_info:
            validate_output_pattern(pattern)
        assert message in str(exc_info.value)

    def test_output_pattern_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_output_pattern("/output/**")


class TestCompileOutputPath:
    @pytest.mark.parametrize(
        "input_path,input_pattern,output_pattern,expected",
        [
            ("/input/file/path.graphql", "/input/file/path.graphql", "/output/file/path.ts", "/output/file/path.ts"),
            ("/input/file/path.graphql", "/input/file/*.graphql", "/output/file/path.ts", "/output/file/path.ts"),
            ("/input/file/path.graphql", "/input/file/**/*.graphql", "/output/file/path.ts", "/output/file/path.ts"),
            (
                "/input/file/sub/path.graphql",
                "/input/file/**/*.graphql",
                "/output/file/sub/path.ts",
                "/output/file/sub/path.ts",
            ),
            ("/input/file/path.graphql", "/input/file/path.graphql", "/output/file/*.ts", "/output/file/path.ts"),
            ("/input/file/path.graphql", "/input/file/*.graphql", "/output/file/*.ts", "/output/file/path.ts"),
            ("/input/file/sub/path.graphql", "/input/file/**/*.graphql", "/output/file/*.ts", "/output/file/sub/path.ts"),
            ("/input/file/path.graphql", "/input/**", "/output/*.ts", "/output/file/path.ts"),
            ("/input/file/path.graphql", "/input/**/*.graphql", "/output/*", "/output/file/path.graphql"),
            ("schema/user.graphql", "**/*.graphql", "generated/*_types.py", "generated/schema/user_types.py"),
        ],
    )
    def test_output_path(self, input_path, input_pattern, output_pattern, expected):
        assert compile_output_path(input_path, input_pattern, output_pattern) == expected

    @pytest.mark.parametrize("output_pattern", ["/output/**", "/output/*/", "/output/*/*.ts"])
    def test_illegal_output_pattern_throws(self, output_pattern):
        with pytest.raises(OutputPatternError):
            compile_output_path("/input/any/file/path.ext", "/input/any/file/path.ext", output_pattern)


@pytest.fixture
def source_tree(tmp_path):
    files = [
        "Category/CategoryForums.graphql",
        "Channel.graphql",
        "Forum.graphql",
        "Forum/ForumPosts.graphql",
        "User.graphql",
        "notes.txt",
    ]
    for name in files:
        path = tmp_path / "schema" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("type Query { ok: Boolean }\n")
    return tmp_path


class TestFilesystem:
    def test_load_files_collects_relative_paths(self, source_tree):
        filesystem = Filesystem(source_tree)
        result = sorted(filesystem.load_files("schema", "**/*.graphql", "out.py"))

        assert result == [
            "Category/CategoryForums.graphql",
            "Channel.graphql",
            "Forum.graphql",
            "Forum/ForumPosts.graphql",
            "User.graphql",
        ]

    def test_load_files_is_lazy_and_single_pass(self, source_tree):
        filesystem = Filesystem(source_tree)
        files = filesystem.load_files("schema", "*.graphql", "out.py")

        assert next(files) in {"Channel.graphql", "Forum.graphql", "User.graphql"}
        remaining = list(files)
        assert len(remaining) == 2
        assert list(files) == []

    def test_load_files_validates_output_pattern_eagerly(self, source_tree):
        filesystem = Filesystem(source_tree)
        with pytest.raises(OutputPatternError):
            filesystem.load_files("schema", "**/*.graphql", "out/**/*.py")

    def test_output_paths_are_recorded(self, source_tree):
        filesystem = Filesystem(source_tree)
        list(filesystem.load_files("schema", "**/*.graphql", "generated/*.py"))

        streams = filesystem.create_output_streams("schema", "**/*.graphql", "generated/*.py")
        assert list(streams) == [
            "generated/Category/CategoryForums.py",
            "generated/Channel.py",
            "generated/Forum.py",
            "generated/Forum/ForumPosts.py",
            "generated/User.py",
        ]

    def test_create_output_streams_for_unknown_pattern(self, tmp_path):
        with pytest.raises(KeyError):
            Filesystem(tmp_path).create_output_streams("schema", "*.graphql", "out.py")

    def test_streams_for_the_same_path_are_shared(self, tmp_path):
        filesystem = Filesystem(tmp_path)
        filesystem.register_pattern("", "*.graphql", "out.py")

        first = filesystem.create_output_streams("", "*.graphql", "out.py")["out.py"]
        second = filesystem.open_output_stream(str(tmp_path / "out.py"))
        assert first is second

        first.write("a\n")
        first.release()
        assert not (tmp_path / "out.py").exists()

        second.write("b\n")
        second.release()
        assert (tmp_path / "out.py").read_text() == "a\nb\n"


class TestAtomicOutputStream:
    def test_commit_on_release(self, tmp_path):
        path = tmp_path / "nested" / "out.py"
        stream = AtomicOutputStream(path).acquire()
        stream.write("x = 1\n")

        assert not path.exists()
        stream.release()

        assert path.read_text() == "x = 1\n"
        assert stream.committed
        assert list(path.parent.iterdir()) == [path]

    def test_discard_leaves_target_untouched(self, tmp_path):
        path = tmp_path / "out.py"
        path.write_text("original\n")

        stream = AtomicOutputStream(path).acquire()
        stream.write("partial")
        stream.release(discard=True)

        assert path.read_text() == "original\n"
        assert stream.closed
        assert not stream.committed

    def test_discarding_holder_does_not_prevent_commit_of_others(self, tmp_path):
        path = tmp_path / "out.py"
        stream = AtomicOutputStream(path)
        stream.acquire()
        stream.acquire()

        stream.write("kept\n")
        stream.release(discard=True)
        stream.release()

        assert path.read_text() == "kept\n"

    def test_write_after_commit_fails(self, tmp_path):
        stream = AtomicOutputStream(tmp_path / "out.py").acquire()
        stream.release()

        with pytest.raises(ValueError):
            stream.write("late")


if __name__ == "__main__":
    pytest.main([__file__])
