from setuptools import setup, find_packages

setup(
    name='flow-canvas',
    version='1.0.0',
    description='Node-graph canvas core: type registry, layered layout and pluggable serialization flavors',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'networkx>=3.0',
        'lxml>=6.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'flow_canvas.flavor': [
            'default = flow_api.plugins.base:Flavor',
            'rest = flavor_plugin_rest.plugin:RestApiFlavor',
            'graphql = flavor_plugin_graphql.plugin:GraphQLFlavor',
            'encoded = flavor_plugin_encoded.plugin:EncodedFlavor',
            'xml = flavor_plugin_xml.plugin:XmlFlavor',
        ],
    },
    python_requires='>=3.8',
)
