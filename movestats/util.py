import enum
import re


def _indent(s):
    return re.sub(r"^", "    ", s, flags=re.MULTILINE)


def _format_collection(coll, delim_open, delim_close):
    elements = [_format(x) for x in coll]
    if elements and "\n" in elements[0]:
        return delim_open + "\n" + ",\n".join(_indent(e) for e in elements) + delim_close
    else:
        return delim_open + ", ".join(elements) + delim_close


def _format(obj):
    if isinstance(obj, float):
        return "%.02f" % obj
    elif isinstance(obj, tuple):
        return _format_collection(obj, "(", ")")
    elif isinstance(obj, list):
        # per-tick sample lists get long quickly
        if len(obj) > 8:
            return f"[...]({len(obj)})"
        return _format_collection(obj, "[", "]")
    elif isinstance(obj, enum.Enum):
        return repr(obj)
    else:
        return str(obj)


class Base:
    # __slots__: Tuple = ()

    def _attr_repr(self, attr):
        return attr + "=" + _format(getattr(self, attr))

    def __repr__(self):
        attrs = []
        for attr in dir(self):
            # uppercase names are nested classes
            if not callable(getattr(self, attr)) and not (attr.startswith("_") or attr[0].isupper()):
                s = self._attr_repr(attr)
                if s:
                    attrs.append(_indent(s))

        return "%s(\n%s)" % (self.__class__.__name__, ",\n".join(attrs))


class Enum(enum.Enum):
    def __repr__(self):
        return f"{self.value}:{self.name}"
