import importlib

mod = "openapiproto"
class LazyLoader:
    """
    Lazy loader for the openapiproto functions to speed up startup time.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "convert": (f"{mod}.openapitoproto", "convert"),
    "convert_openapi_to_proto": (f"{mod}.openapitoproto", "convert_openapi_to_proto"),
    "ConvertOptions": (f"{mod}.openapitoproto", "ConvertOptions"),
    "ConvertResult": (f"{mod}.openapitoproto", "ConvertResult"),
    "TypeInfo": (f"{mod}.openapitoproto", "TypeInfo"),
    "ConversionError": (f"{mod}.errors", "ConversionError"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
