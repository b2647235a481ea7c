"""模板替换单元测试"""

from __future__ import annotations

import pytest

from scaffolder.core.context import ScaffoldContext
from scaffolder.core.exceptions import ConfigError, TemplateError
from scaffolder.core.template import render_args, render_template


class TestRenderTemplate:
    def test_no_placeholder_is_identity(self, ctx: ScaffoldContext) -> None:
        assert render_template("plain text", ctx) == "plain text"

    def test_context_fields(self, ctx: ScaffoldContext) -> None:
        ctx.repo_name = "shop"
        out = render_template("{{ .RepoName }}/{{ .SiteName }}@{{ .Branch }} in {{ .Path }}", ctx)
        assert out == "shop/myapp@feature/auth in feature-auth"

    def test_whitespace_inside_delimiters(self, ctx: ScaffoldContext) -> None:
        assert render_template("{{.SiteName}}-{{   .SiteName   }}", ctx) == "myapp-myapp"

    def test_db_suffix(self, ctx: ScaffoldContext) -> None:
        ctx.set_db_suffix("swift_runner")
        assert render_template("{{ .SiteName }}_{{ .DbSuffix }}", ctx) == "myapp_swift_runner"

    def test_empty_db_suffix_is_known(self, ctx: ScaffoldContext) -> None:
        assert render_template("x{{ .DbSuffix }}", ctx) == "x"

    def test_variables(self, ctx: ScaffoldContext) -> None:
        ctx.set_var("DB_DATABASE", "myapp_bold_fox")
        assert render_template("db={{ .DB_DATABASE }}", ctx) == "db=myapp_bold_fox"

    def test_unknown_identifier_fails(self, ctx: ScaffoldContext) -> None:
        with pytest.raises(TemplateError, match="NOPE") as exc:
            render_template("{{ .NOPE }}", ctx)
        assert exc.value.identifier == "NOPE"
        assert isinstance(exc.value, ConfigError)

    def test_worktree_path(self, ctx: ScaffoldContext) -> None:
        assert render_template("{{ .WorktreePath }}", ctx) == ctx.worktree_path


class TestRenderArgs:
    def test_each_element_rendered(self, ctx: ScaffoldContext) -> None:
        assert render_args(["--site", "{{ .SiteName }}", "plain"], ctx) == ["--site", "myapp", "plain"]
