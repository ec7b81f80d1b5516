## octtree spatial index over triangles for polyinside
## Copyright (c) 2020 Richard DeVaul

# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

"""octtree spatial index over triangles

The tree is a nested list.  Leaves look like ``['e', box, center,
i0, i1, ...]`` where the ``i`` are indices into the element list;
branches look like ``['b', box, center, child0, ..., child7]``.
A triangle whose bounding box straddles a split plane is stored in
every octant it touches, so traversals keep track of the indices they
have already reported.
"""

import logging

from polyinside.geom import (bboxcenter, bboxdim, epsilon, isinsidebbox,
                             point, pointsbbox, vstr)
from polyinside.geometry_utils import Triangle

logger = logging.getLogger(__name__)

# Two closed boxes overlap unless they are separated along some axis.
# Touching faces count as overlap, so a triangle that lies exactly in
# a split plane lands in the octants on both sides.
def boxoverlap(bbx1,bbx2):
    """determine if two 3D bounding boxes overlap (or touch)"""
    for i in range(3):
        if bbx1[1][i] < bbx2[0][i] or bbx2[1][i] < bbx1[0][i]:
            return False
    return True

def bbox2oct(bbx,center):
    """
    Utility function to assign a bounding box to one or more octants.

    bbox2oct(bbx,center)

    bbx: 3D bounding box to assign
    center: split point

    returns list of octants, numbered 0 to 7.  Bit 0 of the octant
    number is set for the high-x side of the split, bit 1 for high y,
    bit 2 for high z.
    """
    sides = []
    for i in range(3):
        s = []
        if bbx[0][i] <= center[i]:
            s.append(0)
        if bbx[1][i] >= center[i]:
            s.append(1)
        sides.append(s)
    return [x + 2*y + 4*z
            for z in sides[2]
            for y in sides[1]
            for x in sides[0]]

def box2boxes(bbox,center):
    """Split a 3D bounding box at ``center`` into eight octant boxes.
    Returns a list of ``[box, boxcenter]`` pairs, indexed by octant
    number as assigned by ``bbox2oct``.
    """
    if not isinsidebbox(bbox,center):
        raise ValueError('center point does not lie inside the bounding box')

    rlist = []
    for octant in range(8):
        lo = []
        hi = []
        for i in range(3):
            if octant & (1 << i):
                lo.append(center[i])
                hi.append(bbox[1][i])
            else:
                lo.append(bbox[0][i])
                hi.append(center[i])
        box = [point(lo[0],lo[1],lo[2]),point(hi[0],hi[1],hi[2])]
        rlist.append([box, bboxcenter(box)])
    return rlist


class TriangleOctree():

    """Octree over triangles, usable as a read-only spatial index.

    Supports bounding box queries with ``getElements(bbox)`` and ray
    traversal with ``traverse(ray, visitor)``.  The tree is rebuilt
    lazily after ``addElement``; call ``build()`` before sharing an
    instance between threads, since traversal itself never mutates
    the tree.
    """

    def __init__(self,triangles=None,maxdepth=None,leafsize=None,
                 mindim=None):

        if maxdepth is None:
            self.__maxdepth = 7
        elif isinstance(maxdepth,int) and not isinstance(maxdepth,bool) and maxdepth > 0:
            self.__maxdepth = maxdepth
        else:
            raise ValueError('bad max depth value: '+str(maxdepth))

        if leafsize is None:
            self.__leafsize = 8
        elif isinstance(leafsize,int) and not isinstance(leafsize,bool) and leafsize > 0:
            self.__leafsize = leafsize
        else:
            raise ValueError('bad leaf size value: '+str(leafsize))

        if mindim is None:
            self.__mindim = epsilon
        elif isinstance(mindim,(int,float)) and mindim > 0:
            self.__mindim = mindim
        else:
            raise ValueError('bad mindim value: '+str(mindim))

        self.__elements = []
        self.__boxes = []
        self.__bbox = None
        self.__tree = []
        self.__depth = 0
        self.__update = True

        if triangles:
            for tri in triangles:
                self.addElement(tri)

    def __repr__(self):
        return 'TriangleOctree(elements={},depth={},maxdepth={},leafsize={},bbox={})'.format(
            len(self.__elements),self.__depth,self.__maxdepth,self.__leafsize,
            vstr(self.__bbox))

    def __len__(self):
        return len(self.__elements)

    def addElement(self,element):
        """ add a triangle to the collection, don't update the tree
        -- yet.  ``element`` is a ``Triangle`` or a sequence of three
        vertices."""
        if not isinstance(element,Triangle):
            if len(element) != 3:
                raise ValueError('bad element passed to addElement')
            element = Triangle.from_vertices(*element)
        self.__elements.append(element)
        self.__boxes.append(element.bbox())
        self.__update = True

    def build(self):
        """
        build the tree from the current contents of the element list
        """
        if not self.__update:
            return
        self.__update = False
        self.__depth = 0

        if not self.__elements:
            self.__bbox = None
            self.__tree = []
            return

        self.__bbox = pointsbbox([b[0] for b in self.__boxes] +
                                 [b[1] for b in self.__boxes])

        def recurse(box,center,indices,depth=0):
            if depth > self.__depth:
                self.__depth = depth
            bbdim = bboxdim(box)
            if (len(indices) <= self.__leafsize or
                depth >= self.__maxdepth or
                max(bbdim) < self.__mindim):
                return ['e', box, center] + indices

            children = box2boxes(box,center)
            buckets = [[] for _ in range(8)]
            for ind in indices:
                for octant in bbox2oct(self.__boxes[ind],center):
                    buckets[octant].append(ind)

            node = ['b', box, center]
            for (cbox, ccenter), bucket in zip(children,buckets):
                if bucket:
                    node.append(recurse(cbox,ccenter,bucket,depth+1))
                else:
                    node.append([])
            return node

        self.__tree = recurse(self.__bbox, bboxcenter(self.__bbox),
                              list(range(len(self.__elements))))
        logger.debug('built octree over %d triangles, depth %d',
                     len(self.__elements), self.__depth)

    @property
    def depth(self):
        return self.__depth

    @depth.setter
    def depth(self,n):
        raise ValueError("can't set tree depth")

    @property
    def maxdepth(self):
        return self.__maxdepth

    @maxdepth.setter
    def maxdepth(self,d):
        if not isinstance(d,int) or isinstance(d,bool) or d < 1:
            raise ValueError('bad maxdepth value: '+str(d))
        self.__maxdepth = d
        self.__update = True

    @property
    def leafsize(self):
        return self.__leafsize

    @property
    def elements(self):
        return list(self.__elements)

    def bounding_box(self):
        """return the bounding box of all triangles, or ``None`` if the
        index is empty"""
        self.build()
        if self.__bbox is None:
            return None
        return [list(self.__bbox[0]), list(self.__bbox[1])]

    def getElements(self,bbox):
        """return a list of triangles with bounding boxes that overlap
        the provided bounding box, or the empty list if none.

        """
        self.build()
        found = set()

        def recurse(subtree):
            if not subtree or not boxoverlap(subtree[1],bbox):
                return
            if subtree[0] == 'e':
                for ind in subtree[3:]:
                    if ind not in found and boxoverlap(bbox,self.__boxes[ind]):
                        found.add(ind)
            else:
                for child in subtree[3:]:
                    recurse(child)

        recurse(self.__tree)
        return [self.__elements[i] for i in sorted(found)]

    def traverse(self,ray,visitor):
        """Push ``ray`` through the tree, reporting each candidate
        triangle to ``visitor`` at most once.

        ``visitor.do_intersect(ray, box)`` prunes nodes and triangles,
        ``visitor.intersection(ray, triangle)`` receives candidates,
        and traversal ends as soon as ``visitor.go_further()`` is
        false.
        """
        self.build()
        seen = set()

        def recurse(subtree):
            if not subtree or not visitor.do_intersect(ray,subtree[1]):
                return True
            if subtree[0] == 'e':
                for ind in subtree[3:]:
                    if ind in seen:
                        continue
                    seen.add(ind)
                    if not visitor.do_intersect(ray,self.__boxes[ind]):
                        continue
                    visitor.intersection(ray,self.__elements[ind])
                    if not visitor.go_further():
                        return False
                return True
            for child in subtree[3:]:
                if not recurse(child):
                    return False
            return True

        recurse(self.__tree)


__all__ = ['TriangleOctree', 'boxoverlap', 'bbox2oct', 'box2boxes']
