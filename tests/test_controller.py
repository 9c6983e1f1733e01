"""
Test Controller: configuration inheritance, exposure inheritance,
renderer caching and the rendering algorithm.
"""

import threading

import pytest

import viewkit.controller
from viewkit import (
    ConfigInvalidFault,
    Context,
    Controller,
    ControllerConfig,
    Part,
    Rendered,
    Renderer,
    Scope,
    TemplateNotFoundFault,
    UndefinedTemplateError,
    UndefinedTemplateFault,
    expose,
    private_expose,
)


@pytest.fixture
def counting_renderer(monkeypatch):
    """Count Renderer constructions made through the controller."""
    calls = []

    class CountingRenderer(Renderer):
        def __init__(self, *args, **kwargs):
            calls.append((args, kwargs))
            super().__init__(*args, **kwargs)

    monkeypatch.setattr(viewkit.controller, "Renderer", CountingRenderer)
    return calls


# ============================================================================
# Configuration
# ============================================================================

class TestConfiguration:

    def test_subclass_seeded_from_parent(self, templates_dir):
        class Parent(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        class Child(Parent):
            settings = {"layout": "app"}

        assert Child.config.template == "greeting"
        assert Child.config.paths == (templates_dir,)
        assert Child.config.layout == "app"
        assert Parent.config.layout is False

    def test_configure_does_not_reach_ancestor(self):
        class Parent(Controller):
            settings = {"template": "parent"}

        class Child(Parent):
            pass

        Child.configure(template="child")

        assert Child.config.template == "child"
        assert Parent.config.template == "parent"

    def test_parent_changes_after_declaration_not_inherited(self):
        class Parent(Controller):
            settings = {"template": "before"}

        class Child(Parent):
            pass

        Parent.configure(template="after")

        assert Child.config.template == "before"

    def test_renderer_options_keep_default_key(self):
        class View(Controller):
            settings = {"renderer_options": {"trim_blocks": True}}

        assert View.config.renderer_options["default_encoding"] == "utf-8"
        assert View.config.renderer_options["trim_blocks"] is True

    def test_renderer_options_default_can_be_overridden(self):
        class View(Controller):
            settings = {"renderer_options": {"default_encoding": "latin-1"}}

        assert View.config.renderer_options["default_encoding"] == "latin-1"

    def test_config_class_attribute(self):
        class View(Controller):
            config = ControllerConfig(template="explicit")

        assert View.config.template == "explicit"

    def test_paths_are_normalized(self, templates_dir):
        class View(Controller):
            settings = {"paths": templates_dir}

        paths = View.paths()
        assert len(paths) == 1
        assert str(paths[0]) == templates_dir

    def test_instance_attributes(self):
        class View(Controller):
            settings = {"template": "users/index", "layout": "app"}

        view = View()
        assert view.config is View.config
        assert view.template_path == "users/index"
        assert view.layout_dir == "layouts"
        assert view.layout_path == "layouts/app"
        assert view.part_builder.scope_builder is view.scope_builder

    def test_equality_by_type_and_config(self):
        class View(Controller):
            settings = {"template": "a"}

        class Other(Controller):
            settings = {"template": "a"}

        assert View() == View()
        assert View() != Other()


# ============================================================================
# Exposure inheritance
# ============================================================================

class TestExposureInheritance:

    def test_snapshot_at_declaration(self):
        class Parent(Controller):
            pass

        Parent.expose("a")
        Parent.expose("b")

        class Child(Parent):
            pass

        Parent.expose("c")

        assert Child.exposure_registry().names() == ["a", "b"]
        assert Parent.exposure_registry().names() == ["a", "b", "c"]

    def test_child_exposures_do_not_reach_parent(self):
        class Parent(Controller):
            pass

        Parent.expose("a")

        class Child(Parent):
            pass

        Child.expose("b")

        assert "b" not in Parent.exposure_registry()

    def test_override_replaces_inherited(self):
        class Parent(Controller):
            pass

        Parent.expose("title", func=lambda: "parent")

        class Child(Parent):
            @expose(decorate=False)
            def title(self):
                return "child"

        registry = Child.exposure_registry()
        assert registry.names() == ["title"]
        assert Child().exposures({})["title"] == "child"

    def test_decorated_methods_registered_in_order(self):
        class View(Controller):
            @expose
            def first(self):
                return 1

            def helper(self):
                return "not exposed"

            @private_expose
            def second(self):
                return 2

        registry = View.exposure_registry()
        assert registry.names() == ["first", "second"]
        assert registry["second"].private

    def test_multiple_names_share_options(self):
        class View(Controller):
            pass

        View.expose("name", "email", layout=True)

        registry = View.exposure_registry()
        assert registry["name"].for_layout
        assert registry["email"].for_layout

    def test_multiple_names_reject_computation(self):
        class View(Controller):
            pass

        with pytest.raises(TypeError):
            View.expose("a", "b", func=lambda: 1)

    def test_redeclare_does_not_affect_bound_instances(self):
        class View(Controller):
            pass

        View.expose("name", decorate=False)
        view = View()

        View.expose("name", func=lambda: "changed", decorate=False)

        assert view.exposures({"name": "Ada"}) == {"name": "Ada"}
        assert View().exposures({"name": "Ada"}) == {"name": "changed"}


# ============================================================================
# Declaration checks
# ============================================================================

class TestDeclaration:

    def test_layout_exposure_does_not_enable_layout(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "layout": False}

            @expose(decorate=False)
            def layout(self, *, theme="dark"):
                return theme

        View.expose("name", decorate=False)

        rendered = View()(name="Ada")

        assert rendered.output == "Hello, Ada!"
        assert rendered["layout"] == "dark"

    @pytest.mark.parametrize(
        "name",
        ["paths", "renderer", "configure", "expose", "call", "config", "exposures", "template_path"],
    )
    def test_exposure_shadowing_controller_api_rejected(self, name):
        def method(self):
            return None

        with pytest.raises(ConfigInvalidFault) as exc_info:
            type("View", (Controller,), {name: expose(method)})

        assert exc_info.value.metadata["key"] == name

    def test_static_and_class_method_exposures(self):
        class View(Controller):
            prefix = "Dr."

            @staticmethod
            @expose(decorate=False)
            def greeting(name):
                return f"Hi {name}"

            @classmethod
            @expose(decorate=False)
            def title(cls, name):
                return f"{cls.prefix} {name}"

        assert View.exposure_registry().names() == ["greeting", "title"]
        assert View().exposures({"name": "Ada"}) == {"greeting": "Hi Ada", "title": "Dr. Ada"}

    def test_non_function_exposure_rejected(self):
        class Computation:
            def __call__(self):
                return 1

        with pytest.raises(ConfigInvalidFault):
            class View(Controller):
                value = expose(Computation())

    def test_multiple_controller_bases_rejected(self):
        class Left(Controller):
            pass

        class Right(Controller):
            pass

        with pytest.raises(ConfigInvalidFault) as exc_info:
            class Both(Left, Right):
                pass

        assert exc_info.value.metadata["key"] == "bases"

    def test_mixin_bases_allowed(self):
        class Helpers:
            def shout(self, text):
                return text.upper()

        class Base(Controller):
            settings = {"template": "greeting"}

        class View(Helpers, Base):
            @expose(decorate=False)
            def title(self, name):
                return self.shout(name)

        assert View.config.template == "greeting"
        assert View().exposures({"name": "ada"}) == {"title": "ADA"}


# ============================================================================
# Renderer cache
# ============================================================================

class TestRendererCache:

    def test_same_format_returns_same_instance(self, templates_dir, counting_renderer):
        class View(Controller):
            settings = {"paths": [templates_dir]}

        first = View.renderer("html")
        second = View.renderer("html")

        assert first is second
        assert len(counting_renderer) == 1

    def test_renderer_constructed_with_paths_format_and_options(self, templates_dir, counting_renderer):
        class View(Controller):
            settings = {"paths": [templates_dir], "renderer_options": {"trim_blocks": True}}

        renderer = View.renderer("json")

        assert renderer.format == "json"
        assert renderer.options == {"default_encoding": "utf-8", "trim_blocks": True}
        assert [str(path) for path in renderer.paths] == [templates_dir]

    def test_formats_cached_separately(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir]}

        assert View.renderer("html") is not View.renderer("json")
        assert len(View.renderer_cache()) == 2

    def test_cache_is_per_type(self, templates_dir):
        class Parent(Controller):
            settings = {"paths": [templates_dir]}

        class Child(Parent):
            pass

        assert Parent.renderer("html") is not Child.renderer("html")

    def test_cache_shared_by_instances(self, templates_dir, counting_renderer):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        View.expose("name", decorate=False)

        View()(name="a")
        View()(name="b")

        assert len(counting_renderer) == 1

    def test_concurrent_first_lookup_constructs_once(self, templates_dir, counting_renderer):
        class View(Controller):
            settings = {"paths": [templates_dir]}

        barrier = threading.Barrier(8)
        results = []

        def lookup():
            barrier.wait()
            results.append(View.renderer("html"))

        threads = [threading.Thread(target=lookup) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(counting_renderer) == 1
        assert all(result is results[0] for result in results)


# ============================================================================
# Call orchestration
# ============================================================================

class TestCall:

    def test_greeting_end_to_end(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "layout": False}

        Greeting.expose("name", decorate=False)

        rendered = Greeting()(name="Ada")

        assert isinstance(rendered, Rendered)
        assert rendered.output == "Hello, Ada!"
        assert dict(rendered.locals) == {"name": "Ada"}

    def test_call_alias(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        Greeting.expose("name", decorate=False)

        assert Greeting().call(name="Ada").output == "Hello, Ada!"

    def test_format_selects_template(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        Greeting.expose("name", decorate=False)

        rendered = Greeting()(format="json", name="Ada")

        assert rendered.output == '{"greeting": "Hello, Ada"}'

    def test_default_format_setting(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "default_format": "json"}

        Greeting.expose("name", decorate=False)

        assert Greeting()(name="Ada").output.startswith("{")

    def test_undefined_template_fails_before_renderer_lookup(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir]}

        calls = []
        View.expose("name", func=lambda name: calls.append(name))

        with pytest.raises(UndefinedTemplateFault) as exc_info:
            View()(name="Ada")

        assert exc_info.value.code == "UNDEFINED_TEMPLATE"
        assert len(View.renderer_cache()) == 0
        assert calls == []

    def test_undefined_template_error_alias(self):
        assert UndefinedTemplateError is UndefinedTemplateFault

    def test_missing_template_propagates(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "missing"}

        with pytest.raises(TemplateNotFoundFault) as exc_info:
            View()()

        assert exc_info.value.metadata["name"] == "missing"

    def test_exposure_errors_propagate_unchanged(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

            @expose
            def name(self):
                raise LookupError("boom")

        with pytest.raises(LookupError, match="boom"):
            View()()

    def test_locals_in_registration_order(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

            @expose(decorate=False)
            def greeting(self, name):
                return f"Hi {name}"

        View.expose("name", decorate=False)

        rendered = View()(name="Ada")

        assert list(rendered.locals) == ["greeting", "name"]
        assert rendered["greeting"] == "Hi Ada"

    def test_locals_are_read_only(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        Greeting.expose("name", decorate=False)

        rendered = Greeting()(name="Ada")

        with pytest.raises(TypeError):
            rendered.locals["name"] = "Grace"

    def test_default_context_not_mutated(self, templates_dir):
        context = Context(site="example")

        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "default_context": context}

        Greeting.expose("name", decorate=False)
        Greeting()(name="Ada")

        assert context.part_builder is None
        assert context.renderer is None

    def test_context_bound_before_exposures(self, templates_dir):
        seen = {}

        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

            @expose(decorate=False)
            def name(self, *, context, name):
                seen["context"] = context
                seen["part"] = context.part("user", {"name": name})
                return name

        view = Greeting()
        rendered = view(name="Ada")

        assert rendered.output == "Hello, Ada!"
        assert seen["context"].part_builder is view.part_builder
        assert seen["context"].renderer is Greeting.renderer("html")
        assert isinstance(seen["part"], Part)
        assert seen["part"].name == "Ada"


# ============================================================================
# Decoration
# ============================================================================

class TestDecoration:

    @pytest.mark.parametrize("input", [{}, {"user": None}, {"user": False}, {"user": ""}, {"user": []}])
    def test_falsy_values_pass_through(self, templates_dir, input):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        View.expose("user", decorate=True)

        rendered = View()(name="Ada", **input)

        assert rendered["user"] == input.get("user")
        assert not isinstance(rendered["user"], Part)

    def test_truthy_values_decorated_by_default(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        View.expose("user")

        rendered = View()(user={"name": "Ada"})

        assert isinstance(rendered["user"], Part)
        assert rendered["user"].name == "Ada"

    def test_decorate_false_keeps_truthy_value(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        View.expose("user", decorate=False)

        value = {"name": "Ada"}
        rendered = View()(user=value)

        assert rendered["user"] is value

    def test_part_namespace_and_options(self, templates_dir):
        class User(Part):
            def shout(self):
                return str(self.name).upper()

        class Admin(Part):
            pass

        namespace = {"User": User}

        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "part_namespace": namespace}

        View.expose("user")
        View.expose("owner", part_class=Admin)

        rendered = View()(user={"name": "Ada"}, owner={"name": "Grace"})

        assert isinstance(rendered["user"], User)
        assert rendered["user"].shout() == "ADA"
        assert isinstance(rendered["owner"], Admin)

    def test_dependents_receive_decorated_values(self, templates_dir):
        class View(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

            @expose(decorate=False)
            def is_part(self, user):
                return isinstance(user, Part)

        View.expose("user")

        assert View()(user={"name": "Ada"})["is_part"] is True


# ============================================================================
# Scopes, partials and layouts
# ============================================================================

class TestRendering:

    def test_template_partial_lookup_walks_up(self, templates_dir):
        class Profile(Controller):
            settings = {"paths": [templates_dir], "template": "users/profile"}

        Profile.expose("user", decorate=False)

        rendered = Profile()(user={"name": "Ada"})

        assert rendered.output == "Ada<Ada>"

    def test_collection_parts_render_partials(self, templates_dir):
        class UserList(Controller):
            settings = {"paths": [templates_dir], "template": "users/list"}

        UserList.expose("users")

        rendered = UserList()(users=[{"name": "Ada"}, {"name": "Grace"}])

        assert rendered.output == "[Ada][Grace]"

    def test_layout_receives_only_layout_locals(self, templates_dir):
        class Dashboard(Controller):
            settings = {"paths": [templates_dir], "template": "locals", "layout": "app"}

        Dashboard.expose("user", layout=True)
        Dashboard.expose("debug_info")

        rendered = Dashboard()(user={"name": "Ada"}, debug_info="trace")

        assert rendered.output == "<html>[user]<p>debug_info,user</p></html>"
        assert set(rendered.locals) == {"user", "debug_info"}

    def test_layout_disabled_renders_bare_template(self, templates_dir):
        class Dashboard(Controller):
            settings = {"paths": [templates_dir], "template": "locals", "layout": None}

        Dashboard.expose("user")

        assert Dashboard()(user="Ada").output == "<p>user</p>"

    def test_layout_embeds_content_once(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "layout": "plain"}

        Greeting.expose("name", decorate=False)

        assert Greeting()(name="Ada").output == "<main>Hello, Ada!</main>"

    def test_missing_layout_raises(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting", "layout": "missing"}

        Greeting.expose("name", decorate=False)

        with pytest.raises(TemplateNotFoundFault) as exc_info:
            Greeting()(name="Ada")

        assert exc_info.value.metadata["name"] == "layouts/missing"

    def test_private_exposures_marked(self, templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir], "template": "greeting"}

        Greeting.expose("name", decorate=False)
        Greeting.private_expose("token", decorate=False)

        rendered = Greeting()(name="Ada", token="secret")

        assert rendered["token"] == "secret"
        assert rendered.private == frozenset({"token"})
        assert rendered.public_locals == {"name": "Ada"}

    def test_search_paths_in_priority_order(self, templates_dir, extra_templates_dir):
        class Greeting(Controller):
            settings = {"paths": [templates_dir, extra_templates_dir], "template": "greeting"}

        class Fallback(Greeting):
            settings = {"template": "fallback"}

        Greeting.expose("name", decorate=False)
        Fallback.expose("name", decorate=False)

        assert Greeting()(name="Ada").output == "Hello, Ada!"
        assert Fallback()(name="Ada").output == "from extra: Ada"

    def test_scope_class_from_namespace(self, templates_dir):
        class Shout(Scope):
            def shout(self):
                return f"{self.name.upper()}{self.punctuation}"

        class View(Controller):
            settings = {
                "paths": [templates_dir],
                "template": "shout",
                "scope": "shout",
                "scope_namespace": {"Shout": Shout},
                "default_context": Context(punctuation="!"),
            }

        View.expose("name", decorate=False)

        assert View()(name="ada").output == "ADA!"

    def test_scope_class_setting(self, templates_dir):
        class Shout(Scope):
            def shout(self):
                return self.name * 2

        class View(Controller):
            settings = {"paths": [templates_dir], "template": "shout", "scope": Shout}

        View.expose("name", decorate=False)

        assert View()(name="ab").output == "abab"
