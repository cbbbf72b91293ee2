"""
Built-in Jinja2 templates for the C++ header.
"""

HEADER_TEMPLATE = """\
// {{ banner }}
{% if sources %}
// Generated from: {{ sources | join(", ") }}
{% endif %}

#pragma once

{% for include in includes %}
#include {{ include }}
{% endfor %}

namespace {{ root_namespace }} {

{% for block in forward_decls %}
namespace {{ block.namespace }} {
{% for decl in block.decls %}
{{ decl }}
{% endfor %}
} // namespace {{ block.namespace }}

{% endfor %}
{% for block in definitions %}
namespace {{ block.namespace }} {

{% for definition in block.definitions %}
{{ definition }}
{% endfor %}
} // namespace {{ block.namespace }}

{% endfor %}
} // namespace {{ root_namespace }}
"""

STRUCT_TEMPLATE = """\
{% if description %}
{{ description | comment }}
{% endif %}
struct {{ struct_name }} {
{% if method %}
{{ indent }}static constexpr const char *kMethod = "{{ method }}";
{% if fields %}

{% endif %}
{% endif %}
{% for field in fields %}
{% if field.comment %}
{{ field.comment | comment | indent_lines(indent | length) }}
{% endif %}
{{ indent }}{{ field.type }} {{ field.name }}{% if field.init %}{}{% endif %};
{% endfor %}
};
"""

ALIAS_TEMPLATE = """\
{% if description %}
{{ description | comment }}
{% endif %}
{% if values %}
// Allowed values: {{ values | join(", ") }}
{% endif %}
using {{ alias_name }} = {{ target }};
"""
